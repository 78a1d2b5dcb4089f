from django.core.management.base import BaseCommand, CommandError

from core.jobs.registry import JOB_DEFINITIONS, JobAlreadyRunning, UnknownJobError, trigger_job


class Command(BaseCommand):
    help = "Run a scheduled job once, in-process, and print its result."

    def add_arguments(self, parser):
        parser.add_argument("job_name", choices=[job.id for job in JOB_DEFINITIONS])

    def handle(self, *args, **options):
        job_name = options["job_name"]
        try:
            result = trigger_job(job_name)
        except (UnknownJobError, JobAlreadyRunning) as e:
            raise CommandError(str(e))

        if result.skipped:
            self.stdout.write(self.style.WARNING(f"{job_name} skipped: {result.reason}"))
            return
        self.stdout.write(self.style.SUCCESS(
            f"{job_name} OK: events_emitted={result.events_emitted} records_processed={result.records_processed}"
        ))
