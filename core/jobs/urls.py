from django.urls import path
from core.jobs.api import job_run_detail, job_run_retry, job_runs_list, job_stats, job_trigger, jobs_list

urlpatterns = [
    path("jobs", jobs_list, name="jobs-list"),
    path("jobs/stats", job_stats, name="job-stats"),
    path("jobs/runs", job_runs_list, name="job-runs-list"),
    path("jobs/runs/<uuid:run_id>", job_run_detail, name="job-run-detail"),
    path("jobs/runs/<uuid:run_id>/retry", job_run_retry, name="job-run-retry"),
    path("jobs/<str:job_name>/trigger", job_trigger, name="job-trigger"),
]
