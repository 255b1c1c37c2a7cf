"""Shared builders and fakes for the test suite."""

from datetime import datetime, timezone

from crowdscore.domain.models import ProjectDelay, SubmissionStatus

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


class FakeAnalysisService:
    """Records calls; returns canned text or raises ``error``."""

    def __init__(self, text="Resumo de teste.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def analyze(self, reputation, api_key):
        self.calls.append((reputation.name, api_key))
        if self.error:
            raise self.error
        return self.text


def make_project(project_id="p1", company_name="ACME", project_name="Widget",
                 link="https://example.com/widget", promised="2024-01-01", actual=None,
                 status=SubmissionStatus.APPROVED, rating=4, **extra):
    return ProjectDelay(
        id=project_id,
        company_name=company_name,
        project_name=project_name,
        crowdfunding_link=link,
        promised_date=promised,
        actual_date=actual,
        status=status,
        rating=rating,
        submitter_email=extra.pop("submitter_email", "usuario@email.com"),
        **extra,
    )


def login(client, email, password="password"):
    response = client.post("/login", data={"email": email, "password": password}, follow_redirects=False)
    assert response.status_code == 303
    return response
