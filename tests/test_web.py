"""
Tests for the FastAPI routes.
"""

from crowdscore.domain.models import SubmissionStatus
from crowdscore.web import app as app_module

from .helpers import login


class TestPublicPages:
    """Test pages that need no login."""

    def test_ranking(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Ranking de Empresas" in response.text
        assert "Impressoras Pontuais" in response.text

    def test_company_detail(self, client):
        response = client.get("/company/Relógios Geniais")
        assert response.status_code == 200
        assert "Relógio Tempo Certo" in response.text

    def test_unknown_company(self, client):
        assert client.get("/company/Ninguém").status_code == 404

    def test_project_detail_shows_approved_only(self, client):
        response = client.get("/company/Relógios Geniais/project/Relógio Tempo Certo")
        assert response.status_code == 200
        assert "Atrasou um pouco" in response.text
        assert "Segundo relato" not in response.text

    def test_fatal_page_when_load_failed(self, client, monkeypatch):
        monkeypatch.setattr(app_module, "load_error", app_module.LOAD_ERROR_MESSAGE)
        response = client.get("/")
        assert response.status_code == 503
        assert "recarregue a página" in response.text


class TestAuth:
    """Test login, registration and logout."""

    def test_bad_credentials(self, client):
        response = client.post("/login", data={"email": "usuario@email.com", "password": "x"})
        assert "E-mail ou senha inválidos." in response.text

    def test_login_sets_session(self, client):
        login(client, "usuario@email.com")
        response = client.get("/dashboard")
        assert "Meus Envios" in response.text

    def test_register_logs_in(self, client, controller):
        response = client.post("/register", data={
            "full_name": "Ana Souza", "birth_date": "1995-01-01",
            "email": "ana@email.com", "password": "segredo",
        }, follow_redirects=False)
        assert response.status_code == 303
        assert controller.get_user("ana@email.com") is not None

    def test_dashboard_requires_login(self, client):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"].startswith("/login")


class TestSubmission:
    """Test the submission form."""

    def test_form_requires_login(self, client):
        response = client.get("/submit", follow_redirects=False)
        assert response.status_code == 303

    def test_submit_creates_pending(self, client, controller):
        login(client, "usuario@email.com")
        response = client.post("/submit", data={
            "company_name": "ACME", "project_name": "Foguete",
            "crowdfunding_link": "https://example.com/foguete",
            "promised_date": "2024-01-01", "rating": "3.5",
        }, follow_redirects=False)
        assert response.status_code == 303
        created = [p for p in controller.state.projects if p.project_name == "Foguete"]
        assert created[0].status is SubmissionStatus.PENDING
        assert created[0].rating == 3.5

    def test_invalid_submission_keeps_values(self, client, controller):
        login(client, "usuario@email.com")
        response = client.post("/submit", data={
            "company_name": "ACME", "project_name": "Foguete",
            "crowdfunding_link": "https://example.com/foguete",
            "promised_date": "2024-01-01", "rating": "0",
        })
        assert "selecione uma avaliação" in response.text
        assert 'value="Foguete"' in response.text
        assert len(controller.state.projects) == 8


class TestAdmin:
    """Test site admin actions."""

    def test_dashboard_lists_pending(self, client):
        login(client, "admin@admin.com")
        response = client.get("/dashboard")
        assert "Painel do Administrador" in response.text
        assert "Robôs vs Minions" in response.text

    def test_approve(self, client, controller):
        login(client, "admin@admin.com")
        client.post("/admin/submission/6/approve")
        assert controller.get_project("6").is_approved

    def test_approve_schedules_analysis_with_key(self, client, controller, analysis_service):
        login(client, "admin@admin.com")
        client.post("/admin/settings/api-key", data={"api_key": "chave"})
        client.post("/admin/submission/6/approve")
        assert analysis_service.calls == [("Mestres dos Tabuleiros", "chave")]
        assert controller.state.analyses["Mestres dos Tabuleiros"].text == "Resumo de teste."

    def test_reject(self, client, controller):
        login(client, "admin@admin.com")
        client.post("/admin/submission/7/reject", data={"reason": "Sem provas"})
        assert controller.get_project("7").rejection_reason == "Sem provas"

    def test_backer_cannot_approve(self, client, controller):
        login(client, "usuario@email.com")
        response = client.post("/admin/submission/6/approve")
        assert response.status_code == 403
        assert controller.get_project("6").is_pending

    def test_merge_duplicates(self, client, controller):
        login(client, "admin@admin.com")
        client.post("/admin/duplicates/merge", data={"ids": "1,8", "pick_submitter_email": "8"})
        merged = [p for p in controller.state.projects if p.id.startswith("merged-")]
        assert len(merged) == 1
        assert merged[0].submitter_email == "duplicado@email.com"

    def test_dismiss_duplicates(self, client, controller):
        login(client, "admin@admin.com")
        key = client.get("/api/duplicates").json()[0]["key"]
        client.post("/admin/duplicates/dismiss", data={"key": key})
        assert controller.duplicate_groups() == []

    def test_edit_submission(self, client, controller):
        login(client, "admin@admin.com")
        client.post("/admin/submission/7/edit", data={
            "company_name": "Relógios Geniais", "project_name": "Smartwatch 3",
            "crowdfunding_link": "http://example.com/relogio3", "promised_date": "2024-05-01",
            "status": "Approved", "rating": "4.5",
        })
        project = controller.get_project("7")
        assert project.project_name == "Smartwatch 3"
        assert project.is_approved
        assert project.rating == 4.5

    def test_invalid_edit_keeps_values(self, client, controller):
        login(client, "admin@admin.com")
        response = client.post("/admin/submission/7/edit", data={
            "company_name": "Relógios Geniais", "project_name": "Smartwatch Renomeado",
            "crowdfunding_link": "sem link", "promised_date": "2024-05-01",
            "status": "Approved", "rating": "4.5",
        })
        assert "link de financiamento coletivo válido" in response.text
        assert 'value="Smartwatch Renomeado"' in response.text
        assert controller.get_project("7").project_name == "Smartwatch Fictício 3"

    def test_merged_record_can_be_rejected(self, client, controller):
        user = controller.get_user("usuario@email.com")
        ids = [
            controller.submit(user, "ACME", "Foguete", "https://example.com/foguete", "2024-01-01", rating).id
            for rating in (4, 2, 5)
        ]
        login(client, "admin@admin.com")
        client.post("/admin/duplicates/merge", data={"ids": ",".join(ids)})
        merged = next(p for p in controller.state.projects if p.id.startswith("merged-"))
        assert 'step="any" value="3.67"' in client.get(f"/admin/submission/{merged.id}/edit").text

        client.post(f"/admin/submission/{merged.id}/edit", data={
            "company_name": "ACME", "project_name": "Foguete",
            "crowdfunding_link": "https://example.com/foguete", "promised_date": "2024-01-01",
            "status": "Rejected", "rating": "3.67",
        })
        assert controller.get_project(merged.id).is_rejected

    def test_create_user(self, client, controller):
        login(client, "admin@admin.com")
        client.post("/admin/users/save", data={
            "email": "chefe@acme.com", "full_name": "Chefe", "birth_date": "1980-01-01",
            "role": "CompanyAdmin", "company_name": "ACME", "password": "x", "is_new": "true",
        })
        assert controller.get_user("chefe@acme.com").company_name == "ACME"


class TestCompanyAdminAndBacker:
    """Test replies and backer edits."""

    def test_company_reply(self, client, controller):
        login(client, "empresa@relogiosgeniais.com")
        client.post("/company-admin/submission/1/reply", data={"reply": "Obrigado pelo apoio."})
        assert controller.get_project("1").company_reply == "Obrigado pelo apoio."

    def test_company_reply_other_company_forbidden(self, client):
        login(client, "empresa@relogiosgeniais.com")
        response = client.post("/company-admin/submission/2/reply", data={"reply": "x"})
        assert response.status_code == 403

    def test_backer_rebuttal(self, client, controller):
        login(client, "triste@email.com")
        client.post("/my/submission/5", data={"rating": "1.5", "rebuttal": "Ainda espero.",
                                               "would_buy_again": "false"})
        project = controller.get_project("5")
        assert project.user_rebuttal == "Ainda espero."
        assert project.rating == 1.5

    def test_theme(self, client, controller):
        client.post("/settings/theme", data={"theme": "dark"})
        assert controller.state.theme == "dark"
        assert 'class="dark"' in client.get("/").text


class TestApi:
    """Test JSON endpoints."""

    def test_reputations(self, client):
        data = client.get("/api/reputations").json()
        assert data[0]["name"] == "Impressoras Pontuais"
        assert data[0]["delay_label"] == "6 dias adiantado"

    def test_public_projects_are_approved_only(self, client):
        data = client.get("/api/projects").json()
        assert {p["status"] for p in data} == {"Approved"}

    def test_duplicates_require_admin(self, client):
        response = client.get("/api/duplicates", follow_redirects=False)
        assert response.status_code == 303
