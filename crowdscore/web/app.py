"""
FastAPI Web Application - CrowdScore
====================================

Public company ranking plus role-based dashboards for backers, company
admins and site admins. Session is a ``user_email`` cookie.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import List, Optional
from urllib.parse import urlencode, urlsplit

from fastapi import BackgroundTasks, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from ..application import Controller
from ..domain.duplicates import group_key
from ..domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..domain.models import SubmissionStatus, User, UserRole
from ..domain.reputation import format_delay, summarize
from ..infrastructure.config import get_settings
from ..infrastructure.persistence import Database, PersistenceError
from .pages import (
    render_account_form,
    render_admin_dashboard,
    render_company_admin_dashboard,
    render_company_detail,
    render_duplicates_view,
    render_edit_submission,
    render_edit_user,
    render_fatal_page,
    render_layout,
    render_login_form,
    render_pending_view,
    render_project_detail,
    render_ranking,
    render_register_form,
    render_settings_view,
    render_submission_form,
    render_submissions_view,
    render_user_dashboard,
    render_users_view,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SESSION_COOKIE = "user_email"
LOAD_ERROR_MESSAGE = "Não foi possível carregar os dados. Por favor, recarregue a página."
SAVE_ERROR_MESSAGE = "Não foi possível salvar as alterações. Tente novamente."

# ── Globals ────────────────────────────────────────────────────────
controller: Optional[Controller] = None
load_error: Optional[str] = None


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global controller, load_error
    if controller is None:
        settings = get_settings()
        for issue in settings.validate():
            logger.warning(issue)
        controller = Controller(Database(str(settings.database.path)))

    if not controller.state.loaded:
        try:
            controller.load()
            load_error = None
        except PersistenceError:
            logger.exception("Failed to load application data")
            load_error = LOAD_ERROR_MESSAGE
    logger.info("CrowdScore ready")
    yield


app = FastAPI(title="CrowdScore", description="Crowdfunding delivery delay reviews", lifespan=lifespan)


@app.middleware("http")
async def require_loaded_state(request: Request, call_next):
    if load_error or controller is None or not controller.state.loaded:
        return HTMLResponse(render_fatal_page(LOAD_ERROR_MESSAGE), status_code=503)
    return await call_next(request)


# ── Response models ────────────────────────────────────────────────

class ProjectOut(BaseModel):
    id: str
    company_name: str
    project_name: str
    crowdfunding_link: str
    promised_date: str
    actual_date: Optional[str] = None
    status: str
    rating: float
    comment: Optional[str] = None
    company_reply: Optional[str] = None
    user_rebuttal: Optional[str] = None
    would_buy_again: Optional[bool] = None


class ReputationOut(BaseModel):
    name: str
    project_count: int
    average_rating: float
    average_delay_days: float
    delay_label: str
    analysis: Optional[str] = None
    analysis_is_error: bool = False


class DuplicateGroupOut(BaseModel):
    key: str
    projects: List[ProjectOut]


# ── Helpers ────────────────────────────────────────────────────────

def _current_user(request: Request) -> Optional[User]:
    """Get logged-in user from cookie, or None."""
    return controller.get_user(request.cookies.get(SESSION_COOKIE))


def _require_site_admin(request: Request) -> User:
    user = _current_user(request)
    if not user or not user.is_site_admin:
        raise PermissionDeniedError("Acesso restrito ao administrador do site.")
    return user


def _require_user(request: Request) -> User:
    user = _current_user(request)
    if not user:
        raise PermissionDeniedError("Você precisa estar logado.")
    return user


def _redirect(url: str, message: str = "", error: str = "") -> RedirectResponse:
    params = {key: value for key, value in (("message", message), ("error", error)) if value}
    if params:
        url = f"{url}{'&' if '?' in url else '?'}{urlencode(params)}"
    return RedirectResponse(url=url, status_code=303)


def _page(request: Request, title: str, body: str, message: str = "", error: str = "",
          status_code: int = 200) -> HTMLResponse:
    user = _current_user(request)
    pending = len(controller.pending_submissions()) if user and user.is_site_admin else 0
    html = render_layout(title, body, user, controller.state.theme, message, error, pending)
    return HTMLResponse(html, status_code=status_code)


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    value = (value or "").strip().lower()
    if value in ("true", "1", "sim", "on"):
        return True
    if value in ("false", "0", "nao", "não", "off"):
        return False
    return None


def _parse_rating(value: Optional[str]) -> float:
    try:
        return float((value or "0").replace(",", "."))
    except ValueError:
        raise ValidationError("Avaliação inválida.")


def run_company_analysis(company_name: str):
    """Background task to refresh a company's AI summary.

    Starlette runs sync tasks in its threadpool, so this writes to
    AppState off the event loop. It only replaces whole entries of
    `analyses` and `loading_analyses`, which requests read one key at a time.
    """
    try:
        logger.info(f"Starting analysis for {company_name}...")
        controller.generate_company_analysis(company_name)
    except Exception as e:
        controller.state.loading_analyses[company_name] = False
        logger.exception(f"Analysis task failed for {company_name}: {e}")


def _schedule_analysis(background_tasks: BackgroundTasks, company_name: str):
    controller.begin_analysis(company_name)
    background_tasks.add_task(run_company_analysis, company_name)


# ── Error handlers ─────────────────────────────────────────────────

@app.exception_handler(PermissionDeniedError)
async def permission_denied(request: Request, exc: PermissionDeniedError):
    if _current_user(request) is None:
        return _redirect("/login", error=str(exc))
    return _page(request, "Acesso negado", "", error=str(exc), status_code=403)


@app.exception_handler(NotFoundError)
async def not_found(request: Request, exc: NotFoundError):
    return _page(request, "Não encontrado", '<a class="btn" href="/">Voltar</a>', error=str(exc),
                 status_code=404)


@app.exception_handler(PersistenceError)
async def persistence_failed(request: Request, exc: PersistenceError):
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return _page(request, "Erro", '<a class="btn" href="/">Voltar</a>', error=SAVE_ERROR_MESSAGE,
                 status_code=500)


# ── Public pages ───────────────────────────────────────────────────

@app.get("/", response_class=HTMLResponse)
async def ranking(request: Request, message: str = "", error: str = ""):
    user = _current_user(request)
    body = render_ranking(controller.reputations(), user, bool(controller.api_key))
    return _page(request, "Ranking", body, message, error)


@app.get("/company/{name}", response_class=HTMLResponse)
async def company_detail(request: Request, name: str, q: str = ""):
    if name not in controller.company_names():
        raise NotFoundError(f"Empresa {name} não encontrada.")
    body = render_company_detail(
        name,
        controller.company_stats(name),
        controller.project_reputations(name),
        controller.state.analyses.get(name),
        controller.state.loading_analyses.get(name, False),
        bool(controller.api_key),
        q,
    )
    return _page(request, name, body)


@app.get("/company/{name}/project/{project}", response_class=HTMLResponse)
async def project_detail(request: Request, name: str, project: str):
    submissions = controller.project_submissions(project, name)
    if not submissions:
        raise NotFoundError(f"Projeto {project} não encontrado.")
    body = render_project_detail(project, name, submissions, summarize(submissions), controller.state.users)
    return _page(request, project, body)


# ── Auth routes ────────────────────────────────────────────────────

@app.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, message: str = "", error: str = ""):
    return _page(request, "Entrar", render_login_form(), message, error)


@app.post("/login")
async def login(request: Request, email: str = Form(""), password: str = Form("")):
    try:
        user = controller.authenticate(email, password)
    except ValidationError as e:
        return _page(request, "Entrar", render_login_form(), error=str(e))

    response = RedirectResponse(url="/dashboard", status_code=303)
    response.set_cookie(key=SESSION_COOKIE, value=user.email, httponly=True)
    return response


@app.get("/register", response_class=HTMLResponse)
async def register_page(request: Request):
    return _page(request, "Cadastrar", render_register_form())


@app.post("/register")
async def register(
    request: Request,
    full_name: str = Form(""),
    birth_date: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    try:
        user = controller.register(full_name, birth_date, email, password)
    except ValidationError as e:
        return _page(request, "Cadastrar", render_register_form(), error=str(e))

    response = _redirect("/dashboard", message="Conta criada com sucesso!")
    response.set_cookie(key=SESSION_COOKIE, value=user.email, httponly=True)
    return response


@app.get("/logout")
async def logout():
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response


# ── Submission ─────────────────────────────────────────────────────

@app.get("/submit", response_class=HTMLResponse)
async def submit_page(request: Request):
    if not _current_user(request):
        return _redirect("/login", error="Você precisa estar logado para enviar um formulário.")
    return _page(request, "Enviar", render_submission_form(controller.company_names()))


@app.post("/submit")
async def submit(
    request: Request,
    company_name: str = Form(""),
    project_name: str = Form(""),
    crowdfunding_link: str = Form(""),
    promised_date: str = Form(""),
    actual_date: str = Form(""),
    rating: str = Form(""),
    comment: str = Form(""),
    would_buy_again: str = Form("true"),
):
    user = _current_user(request)
    if not user:
        return _redirect("/login", error="Você precisa estar logado para enviar um formulário.")

    values = {
        "company_name": company_name, "project_name": project_name,
        "crowdfunding_link": crowdfunding_link, "promised_date": promised_date,
        "actual_date": actual_date, "rating": rating, "comment": comment,
        "would_buy_again": _parse_bool(would_buy_again),
    }
    try:
        controller.submit(
            user,
            company_name=company_name,
            project_name=project_name,
            crowdfunding_link=crowdfunding_link,
            promised_date=promised_date,
            rating=_parse_rating(rating),
            actual_date=actual_date or None,
            comment=comment,
            would_buy_again=_parse_bool(would_buy_again),
        )
    except ValidationError as e:
        body = render_submission_form(controller.company_names(), values)
        return _page(request, "Enviar", body, error=str(e))

    return _redirect("/dashboard", message="Obrigado! Seu envio foi recebido e aguarda aprovação.")


# ── Dashboard ──────────────────────────────────────────────────────

@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request, view: str = "", message: str = "", error: str = ""):
    user = _current_user(request)
    if not user:
        return _redirect("/login")

    users = controller.state.users
    if user.is_site_admin:
        view = view or "pending"
        if view == "duplicates":
            content = render_duplicates_view(controller.duplicate_groups(), users)
        elif view == "submissions":
            content = render_submissions_view(controller.managed_projects())
        elif view == "users":
            content = render_users_view(sorted(users.values(), key=lambda u: u.full_name.lower()))
        elif view == "settings":
            content = render_settings_view(controller.state.api_key)
        elif view == "account":
            content = render_account_form(user)
        else:
            view = "pending"
            content = render_pending_view(controller.pending_submissions(), users)
        body = render_admin_dashboard(view, len(controller.pending_submissions()), content)
    elif user.is_company_admin:
        view = "account" if view == "account" else "submissions"
        body = render_company_admin_dashboard(
            user, view, controller.submissions_for_company(user.company_name), users
        )
    else:
        view = "account" if view == "account" else "submissions"
        body = render_user_dashboard(user, view, controller.submissions_by(user.email))

    return _page(request, "Painel", body, message, error)


# ── Site admin: submissions ────────────────────────────────────────

@app.post("/admin/submission/{project_id}/approve")
async def approve_submission(request: Request, project_id: str, background_tasks: BackgroundTasks):
    _require_site_admin(request)
    project = controller.get_project(project_id)
    if controller.approve(project_id):
        _schedule_analysis(background_tasks, project.company_name)
    return _redirect("/dashboard?view=pending", message="Envio aprovado.")


@app.post("/admin/submission/{project_id}/reject")
async def reject_submission(request: Request, project_id: str, reason: str = Form("")):
    _require_site_admin(request)
    controller.reject(project_id, reason)
    return _redirect("/dashboard?view=pending", message="Envio rejeitado.")


@app.get("/admin/submission/{project_id}/edit", response_class=HTMLResponse)
async def edit_submission_page(request: Request, project_id: str):
    _require_site_admin(request)
    project = controller.get_project(project_id)
    return _page(request, "Editar Envio", render_edit_submission(project, controller.company_names()))


@app.post("/admin/submission/{project_id}/edit")
async def edit_submission(
    request: Request,
    project_id: str,
    background_tasks: BackgroundTasks,
    company_name: str = Form(""),
    project_name: str = Form(""),
    crowdfunding_link: str = Form(""),
    promised_date: str = Form(""),
    actual_date: str = Form(""),
    status: str = Form(""),
    rating: str = Form("0"),
    comment: str = Form(""),
    company_reply: str = Form(""),
    user_rebuttal: str = Form(""),
    rejection_reason: str = Form(""),
    would_buy_again: str = Form(""),
):
    _require_site_admin(request)
    project = controller.get_project(project_id)
    updated = replace(
        project,
        company_name=company_name.strip(),
        project_name=project_name.strip(),
        crowdfunding_link=crowdfunding_link.strip(),
        promised_date=promised_date,
        actual_date=actual_date or None,
        comment=comment.strip() or None,
        company_reply=company_reply.strip() or None,
        user_rebuttal=user_rebuttal.strip() or None,
        rejection_reason=rejection_reason.strip() or None,
        would_buy_again=_parse_bool(would_buy_again),
    )
    try:
        try:
            new_status = SubmissionStatus(status)
        except ValueError:
            raise ValidationError(f"Status inválido: {status}")
        updated = replace(updated, status=new_status, rating=_parse_rating(rating))
        analysis_due = controller.update_submission(updated)
    except ValidationError as e:
        body = render_edit_submission(updated, controller.company_names())
        return _page(request, "Editar Envio", body, error=str(e))

    if analysis_due:
        _schedule_analysis(background_tasks, updated.company_name)
    return _redirect("/dashboard?view=submissions", message="Envio atualizado.")


# ── Site admin: duplicates ─────────────────────────────────────────

@app.post("/admin/duplicates/dismiss")
async def dismiss_duplicate(request: Request, key: str = Form("")):
    _require_site_admin(request)
    try:
        controller.dismiss_duplicate(key)
    except ValidationError as e:
        return _redirect("/dashboard?view=duplicates", error=str(e))
    return _redirect("/dashboard?view=duplicates", message="Grupo dispensado.")


@app.post("/admin/duplicates/merge")
async def merge_duplicates(request: Request, background_tasks: BackgroundTasks):
    _require_site_admin(request)
    form = await request.form()
    ids = [i.strip() for i in str(form.get("ids", "")).split(",") if i.strip()]
    selections = {
        key[len("pick_"):]: str(value)
        for key, value in form.items()
        if key.startswith("pick_")
    }
    try:
        merged, analysis_due = controller.merge_duplicates(ids, selections)
    except ValidationError as e:
        return _redirect("/dashboard?view=duplicates", error=str(e))

    if analysis_due:
        _schedule_analysis(background_tasks, merged.company_name)
    return _redirect("/dashboard?view=duplicates", message="Envios mesclados com sucesso.")


# ── Site admin: users and settings ─────────────────────────────────

@app.get("/admin/users/edit", response_class=HTMLResponse)
async def edit_user_page(request: Request, email: str = ""):
    _require_site_admin(request)
    user = None
    if email:
        user = controller.get_user(email)
        if not user:
            raise NotFoundError("Usuário não encontrado.")
    return _page(request, "Usuário", render_edit_user(user, controller.company_names()))


@app.post("/admin/users/save")
async def save_user(
    request: Request,
    email: str = Form(""),
    full_name: str = Form(""),
    birth_date: str = Form(""),
    role: str = Form("User"),
    company_name: str = Form(""),
    password: str = Form(""),
    is_new: str = Form("false"),
):
    _require_site_admin(request)
    creating = _parse_bool(is_new) is True
    try:
        try:
            new_role = UserRole(role)
        except ValueError:
            raise ValidationError(f"Tipo de conta inválido: {role}")
        controller.save_user(email, full_name, birth_date, new_role,
                             company_name=company_name, password=password or None, is_new=creating)
    except ValidationError as e:
        existing = None if creating else controller.get_user(email)
        body = render_edit_user(existing, controller.company_names())
        return _page(request, "Usuário", body, error=str(e))

    return _redirect("/dashboard?view=users", message="Usuário salvo.")


@app.post("/admin/settings/api-key")
async def save_api_key(request: Request, api_key: str = Form("")):
    _require_site_admin(request)
    controller.save_api_key(api_key)
    message = "Chave de API salva." if api_key.strip() else "Chave de API removida."
    return _redirect("/dashboard?view=settings", message=message)


@app.post("/admin/analysis/{company_name}")
async def generate_analysis(request: Request, company_name: str, background_tasks: BackgroundTasks):
    _require_site_admin(request)
    if company_name not in controller.company_names():
        raise NotFoundError(f"Empresa {company_name} não encontrada.")
    _schedule_analysis(background_tasks, company_name)
    return _redirect("/", message=f"Gerando análise para {company_name}...")


# ── Company admin and backers ──────────────────────────────────────

@app.post("/company-admin/submission/{project_id}/reply")
async def company_reply(request: Request, project_id: str, reply: str = Form("")):
    user = _require_user(request)
    controller.save_company_reply(user, project_id, reply)
    return _redirect("/dashboard", message="Resposta salva.")


@app.post("/my/submission/{project_id}")
async def update_my_submission(
    request: Request,
    project_id: str,
    rating: str = Form("0"),
    rebuttal: str = Form(""),
    would_buy_again: str = Form(""),
):
    user = _require_user(request)
    try:
        controller.update_submission_by_user(
            user, project_id, _parse_rating(rating), rebuttal, _parse_bool(would_buy_again)
        )
    except ValidationError as e:
        return _redirect("/dashboard", error=str(e))
    return _redirect("/dashboard", message="Envio atualizado.")


@app.post("/account")
async def update_account(request: Request, full_name: str = Form(""), password: str = Form("")):
    user = _require_user(request)
    try:
        controller.update_profile(user.email, full_name, password or None)
    except ValidationError as e:
        return _redirect("/dashboard?view=account", error=str(e))
    return _redirect("/dashboard?view=account", message="Perfil atualizado.")


@app.post("/settings/theme")
async def set_theme(request: Request, theme: str = Form("system")):
    try:
        controller.set_theme(theme)
    except ValidationError as e:
        return _redirect("/", error=str(e))
    referer = urlsplit(request.headers.get("referer", ""))
    back = referer.path or "/"
    if referer.query:
        back = f"{back}?{referer.query}"
    return RedirectResponse(url=back, status_code=303)


# ── API Endpoints ──────────────────────────────────────────────────

@app.get("/api/reputations", response_model=List[ReputationOut])
async def api_reputations():
    result = []
    for rep in controller.reputations():
        result.append(ReputationOut(
            name=rep.name,
            project_count=rep.project_count,
            average_rating=rep.average_rating,
            average_delay_days=rep.average_delay_days,
            delay_label=format_delay(rep.average_delay_days),
            analysis=rep.analysis.text if rep.analysis else None,
            analysis_is_error=rep.analysis.is_error if rep.analysis else False,
        ))
    return result


@app.get("/api/projects", response_model=List[ProjectOut])
async def api_projects(request: Request):
    user = _current_user(request)
    if user and user.is_site_admin:
        projects = controller.state.projects
    else:
        projects = [p for p in controller.state.projects if p.is_approved]
    return [ProjectOut(**p.to_dict()) for p in projects]


@app.get("/api/duplicates", response_model=List[DuplicateGroupOut])
async def api_duplicates(request: Request):
    _require_site_admin(request)
    return [
        DuplicateGroupOut(key=group_key(group), projects=[ProjectOut(**p.to_dict()) for p in group])
        for group in controller.duplicate_groups()
    ]
