from datetime import datetime, time, timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.common.timeutils import get_zone
from core.notifications.dispatcher import NotificationDispatcher
from core.notifications.models import MessageTemplate
from core.notifications.providers import SendResult, WhatsAppProvider
from core.school.models import Parent, PeriodTemplate, PeriodTemplateSlot, Student, StudentParent
from core.tenants.models import Branch, Organization

User = get_user_model()

ORG_TZ = "Asia/Kolkata"
ALL_DAYS = [1, 2, 3, 4, 5, 6, 7]


class FakeProvider(WhatsAppProvider):
    """Records every send; returns `result` or raises `exc`."""
    name = "fake"

    def __init__(self, result=None, exc=None):
        self.result = result or SendResult.ok("fake-msg-1")
        self.exc = exc
        self.sent = []

    def send(self, to, template_name, params):
        self.sent.append({"to": to, "template": template_name, "params": dict(params)})
        if self.exc:
            raise self.exc
        return self.result


@pytest.fixture
def local_at():
    """Aware datetime for today's org-local date at the given wall time."""
    def _at(hour, minute=0, days=0):
        zone = get_zone(ORG_TZ)
        today = timezone.now().astimezone(zone).date() + timedelta(days=days)
        return datetime.combine(today, time(hour, minute), tzinfo=zone)
    return _at


@pytest.fixture
def local_today():
    return timezone.now().astimezone(get_zone(ORG_TZ)).date()


@pytest.fixture
def org(db):
    return Organization.objects.create(name="Green Valley School", timezone=ORG_TZ)


@pytest.fixture
def branch(db, org):
    return Branch.objects.create(org=org, name="Main Campus")


@pytest.fixture
def other_branch(db, org):
    return Branch.objects.create(org=org, name="North Campus")


@pytest.fixture
def student(db, org, branch):
    return Student.objects.create(org=org, branch=branch, first_name="Asha", last_name="Rao")


@pytest.fixture
def parent(db, org, branch, student):
    p = Parent.objects.create(org=org, branch=branch, first_name="Meera", last_name="Rao", phone="9876543210")
    StudentParent.objects.create(student=student, parent=p, relation="mother", is_primary_contact=True)
    return p


@pytest.fixture
def templates(db, org):
    return {
        t: MessageTemplate.objects.create(org=org, type=t, name=f"{t}_v1", content=f"{t} message")
        for t in ("absent", "fee_due", "fee_paid", "fee_overdue", "fee_reminder")
    }


@pytest.fixture
def period_template(db, org):
    """P1 08:00-08:40, P2 08:40-09:20; with the default 10 minute buffer the window is 08:50-09:20."""
    pt = PeriodTemplate.objects.create(org=org, name="Regular", is_default=True, active_days=ALL_DAYS)
    PeriodTemplateSlot.objects.create(template=pt, period_number=1, start_time="08:00", end_time="08:40")
    PeriodTemplateSlot.objects.create(template=pt, period_number=2, start_time="08:40", end_time="09:20")
    PeriodTemplateSlot.objects.create(template=pt, period_number=3, start_time="09:20", end_time="09:35", is_break=True)
    return pt


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def dispatcher(provider):
    return NotificationDispatcher(provider=provider)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username="admin", email="admin@school.test", password="pass12345", is_staff=True)


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    refresh = RefreshToken.for_user(admin_user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")
    return client


@pytest.fixture
def tenant_headers(org, branch):
    return {"HTTP_X_ORG_ID": str(org.id), "HTTP_X_BRANCH_ID": str(branch.id)}
