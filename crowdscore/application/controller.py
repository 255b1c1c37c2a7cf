"""
Application Controller - State and Use Cases
=============================================

Owns the in-memory mirror of the store (AppState) and every mutation.

Ordering rule: write to the database first, then update AppState. If the
write raises PersistenceError the in-memory state is left untouched, so the
two never diverge.

    controller = Controller(Database("crowdscore.db"))
    controller.load()
    controller.submit(user, company_name="ACME", ...)
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Set, Tuple

from ..domain.duplicates import find_duplicate_groups
from ..domain.errors import MergeError, NotFoundError, PermissionDeniedError, ValidationError
from ..domain.merge import merge_submissions
from ..domain.models import (
    AnalysisResult,
    Company,
    CompanyReputation,
    DelayStats,
    ProjectDelay,
    ProjectReputation,
    SubmissionStatus,
    User,
    UserRole,
)
from ..domain.reputation import compute_project_reputations, compute_reputation, summarize
from ..domain.validation import require, validate_date, validate_email, validate_link, validate_rating
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.llm import AnalysisService, AnalysisServiceError
from ..infrastructure.llm.analysis_service import MISSING_KEY_MESSAGE
from ..infrastructure.persistence import Database
from .passwords import hash_password, verify_password
from .seed import INITIAL_PROJECTS, INITIAL_USERS

logger = logging.getLogger(__name__)

THEMES = ("light", "dark", "system")
SETTING_THEME = "theme"
SETTING_API_KEY = "apiKey"


@dataclass
class AppState:
    """In-memory mirror of the store."""
    projects: List[ProjectDelay] = field(default_factory=list)
    users: Dict[str, User] = field(default_factory=dict)
    companies: Dict[str, Company] = field(default_factory=dict)
    analyses: Dict[str, AnalysisResult] = field(default_factory=dict)
    loading_analyses: Dict[str, bool] = field(default_factory=dict)
    dismissed_duplicates: Set[str] = field(default_factory=set)
    theme: str = "system"
    api_key: Optional[str] = None
    loaded: bool = False


class Controller:
    """Single entry point for reads and writes of application data."""

    def __init__(self, database: Database, analysis_service: Optional[AnalysisService] = None,
                 settings: Optional[Settings] = None):
        self.database = database
        self.analysis_service = analysis_service or AnalysisService()
        self.settings = settings or get_settings()
        self.state = AppState()

    # ── Loading ────────────────────────────────────────────────────

    def load(self):
        """Open the store, seed on first run and mirror every collection.

        Raises PersistenceError if anything cannot be read.
        """
        self.database.init()
        self.database.initialize(INITIAL_PROJECTS, INITIAL_USERS)

        theme = self.database.get_setting(SETTING_THEME)
        api_key = self.database.get_setting(SETTING_API_KEY)
        projects = self.database.get_all_projects()
        users = self.database.get_all_users()
        companies = self.database.get_all_companies()
        analyses = self.database.get_all_company_analyses()
        dismissed = self.database.get_all_dismissed_duplicates()

        self.state = AppState(
            projects=projects,
            users={u.email: u for u in users},
            companies={c.name: c for c in companies},
            analyses=analyses,
            dismissed_duplicates=set(dismissed),
            theme=theme or "system",
            api_key=api_key or None,
            loaded=True,
        )
        logger.info(f"Loaded {len(projects)} projects, {len(users)} users, {len(companies)} companies")

    # ── Helpers ────────────────────────────────────────────────────

    @property
    def api_key(self) -> Optional[str]:
        return self.state.api_key or self.settings.llm.api_key or None

    def _new_id(self, prefix: str = "") -> str:
        existing = {p.id for p in self.state.projects}
        millis = int(time.time() * 1000)
        while f"{prefix}{millis}" in existing:
            millis += 1
        return f"{prefix}{millis}"

    def _ensure_company(self, name: str):
        if name in self.state.companies:
            return
        company = Company(name=name)
        self.database.put_company(company)
        self.state.companies[name] = company
        logger.info(f"Registered new company: {name}")

    def _save_project(self, project: ProjectDelay):
        self.database.put_project(project)
        for index, existing in enumerate(self.state.projects):
            if existing.id == project.id:
                self.state.projects[index] = project
                break
        else:
            self.state.projects.append(project)

    def get_project(self, project_id: str) -> ProjectDelay:
        for project in self.state.projects:
            if project.id == project_id:
                return project
        raise NotFoundError(f"Envio {project_id} não encontrado.")

    def get_user(self, email: Optional[str]) -> Optional[User]:
        if not email:
            return None
        return self.state.users.get(email)

    # ── Accounts ───────────────────────────────────────────────────

    def register(self, full_name: str, birth_date: str, email: str, password: str) -> User:
        require(full_name=full_name, birth_date=birth_date, email=email, password=password)
        email = validate_email(email)
        validate_date(birth_date, "data de nascimento")
        if email in self.state.users:
            raise ValidationError("Este e-mail já está cadastrado.")

        user = User(
            email=email,
            password_hash=hash_password(password),
            role=UserRole.USER,
            full_name=full_name.strip(),
            birth_date=birth_date,
        )
        self.database.put_user(user)
        self.state.users[email] = user
        logger.info(f"Registered user {email}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.state.users.get((email or "").strip())
        if not user or not verify_password(password or "", user.password_hash):
            raise ValidationError("E-mail ou senha inválidos.")
        return user

    def update_profile(self, email: str, full_name: str, password: Optional[str] = None) -> User:
        user = self.state.users.get(email)
        if not user:
            raise NotFoundError("Usuário não encontrado.")
        require(full_name=full_name)

        updated = replace(user, full_name=full_name.strip())
        if password:
            updated.password_hash = hash_password(password)
        self.database.put_user(updated)
        self.state.users[email] = updated
        return updated

    def save_user(self, email: str, full_name: str, birth_date: str, role: UserRole,
                  company_name: Optional[str] = None, password: Optional[str] = None,
                  is_new: bool = False) -> User:
        """Create or edit an account from the admin panel."""
        require(email=email, full_name=full_name)
        email = validate_email(email)
        validate_date(birth_date, "data de nascimento")

        if role is UserRole.COMPANY_ADMIN:
            company_name = (company_name or "").strip()
            if not company_name:
                raise ValidationError("Administradores de empresa precisam de uma empresa.")
        else:
            company_name = None

        if is_new:
            if email in self.state.users:
                raise ValidationError("Erro: Este e-mail já está em uso.")
            if not password:
                raise ValidationError("Erro: A senha é obrigatória para novos usuários.")
            user = User(
                email=email,
                password_hash=hash_password(password),
                role=role,
                full_name=full_name.strip(),
                birth_date=birth_date or "",
                company_name=company_name,
            )
        else:
            existing = self.state.users.get(email)
            if not existing:
                raise NotFoundError("Usuário não encontrado.")
            user = replace(
                existing,
                role=role,
                full_name=full_name.strip(),
                birth_date=birth_date or existing.birth_date,
                company_name=company_name,
            )
            if password:
                user.password_hash = hash_password(password)

        if company_name:
            self._ensure_company(company_name)
        self.database.put_user(user)
        self.state.users[email] = user
        logger.info(f"{'Created' if is_new else 'Updated'} user {email} ({role.value})")
        return user

    # ── Submissions ────────────────────────────────────────────────

    def submit(self, user: Optional[User], company_name: str, project_name: str,
               crowdfunding_link: str, promised_date: str, rating: float,
               actual_date: Optional[str] = None, comment: Optional[str] = None,
               would_buy_again: Optional[bool] = True) -> ProjectDelay:
        """Record a new report. It stays Pending until an admin approves it."""
        if user is None:
            raise PermissionDeniedError("Você precisa estar logado para enviar um formulário.")

        require(company_name=company_name, project_name=project_name,
                crowdfunding_link=crowdfunding_link, promised_date=promised_date)
        rating = validate_rating(rating)
        link = validate_link(crowdfunding_link)
        promised_date = validate_date(promised_date, "data prometida")
        actual_date = validate_date(actual_date, "data de entrega")
        company_name = company_name.strip()

        project = ProjectDelay(
            id=self._new_id(),
            company_name=company_name,
            project_name=project_name.strip(),
            crowdfunding_link=link,
            promised_date=promised_date,
            actual_date=actual_date,
            status=SubmissionStatus.PENDING,
            rating=rating,
            comment=(comment or "").strip() or None,
            submitter_email=user.email,
            would_buy_again=would_buy_again,
        )
        self._ensure_company(company_name)
        self._save_project(project)
        logger.info(f"New submission {project.id} for {company_name} by {user.email}")
        return project

    def approve(self, project_id: str) -> bool:
        """Approve a report. Returns True when an analysis refresh is due."""
        project = self.get_project(project_id)
        self._ensure_company(project.company_name)
        self._save_project(replace(project, status=SubmissionStatus.APPROVED))
        logger.info(f"Approved submission {project_id}")
        return bool(self.api_key)

    def reject(self, project_id: str, reason: Optional[str] = None) -> ProjectDelay:
        project = self.get_project(project_id)
        updated = replace(
            project,
            status=SubmissionStatus.REJECTED,
            rejection_reason=(reason or "").strip() or None,
        )
        self._save_project(updated)
        logger.info(f"Rejected submission {project_id}")
        return updated

    def update_submission(self, updated: ProjectDelay) -> bool:
        """Admin edit. Any status transition is allowed.

        Returns True when the edit moved the report into Approved and an
        analysis refresh is due.
        """
        before = self.get_project(updated.id)
        require(company_name=updated.company_name, project_name=updated.project_name,
                crowdfunding_link=updated.crowdfunding_link, promised_date=updated.promised_date)
        validate_link(updated.crowdfunding_link)
        validate_date(updated.promised_date, "data prometida")
        validate_date(updated.actual_date, "data de entrega")
        validate_rating(updated.rating, allow_zero=True, half_steps=False)

        self._ensure_company(updated.company_name)
        self._save_project(updated)
        logger.info(f"Edited submission {updated.id} ({before.status.value} -> {updated.status.value})")
        return self.should_generate_analysis(before.status, updated.status)

    def should_generate_analysis(self, old_status: SubmissionStatus, new_status: SubmissionStatus) -> bool:
        return (bool(self.api_key)
                and old_status is not SubmissionStatus.APPROVED
                and new_status is SubmissionStatus.APPROVED)

    def save_company_reply(self, user: User, project_id: str, reply: str) -> ProjectDelay:
        project = self.get_project(project_id)
        if not user.is_company_admin or user.company_name != project.company_name:
            raise PermissionDeniedError("Somente a empresa avaliada pode responder.")
        updated = replace(project, company_reply=(reply or "").strip() or None)
        self._save_project(updated)
        return updated

    def update_submission_by_user(self, user: User, project_id: str, rating: float,
                                  rebuttal: Optional[str], would_buy_again: Optional[bool]) -> ProjectDelay:
        """Submitter's own edits: rating, rebuttal and would-buy-again."""
        project = self.get_project(project_id)
        if project.submitter_email != user.email:
            raise PermissionDeniedError("Você só pode alterar seus próprios envios.")
        if project.is_rejected:
            raise PermissionDeniedError("Envios rejeitados não podem ser alterados.")

        # an unchanged rating may be a merged mean
        unchanged = isinstance(rating, (int, float)) and rating == project.rating
        updated = replace(
            project,
            rating=project.rating if unchanged else validate_rating(rating),
            user_rebuttal=(rebuttal or "").strip() or None,
            would_buy_again=would_buy_again,
        )
        self._save_project(updated)
        return updated

    # ── Duplicates ─────────────────────────────────────────────────

    def duplicate_groups(self) -> List[List[ProjectDelay]]:
        return find_duplicate_groups(self.state.projects, self.state.dismissed_duplicates)

    def dismiss_duplicate(self, group_key: str):
        group_key = (group_key or "").strip()
        if not group_key:
            raise ValidationError("Grupo de duplicados inválido.")
        self.database.put_dismissed_duplicate(group_key)
        self.state.dismissed_duplicates.add(group_key)
        logger.info(f"Dismissed duplicate group {group_key}")

    def merge_duplicates(self, project_ids: List[str], selections: Dict[str, str]) -> Tuple[ProjectDelay, bool]:
        """Replace the given reports by one merged, approved record.

        Returns the merged record and whether an analysis refresh is due.
        The originals are deleted; there is no undo.
        """
        project_ids = list(dict.fromkeys(project_ids))
        if len(project_ids) < 2:
            raise MergeError("Selecione ao menos dois envios para mesclar.")
        members = [self.get_project(pid) for pid in project_ids]
        merged = merge_submissions(members, selections, self._new_id("merged-"))

        self._ensure_company(merged.company_name)
        self._save_project(merged)
        self.database.remove_projects(project_ids)
        removed = set(project_ids)
        self.state.projects = [p for p in self.state.projects if p.id not in removed]
        logger.info(f"Merged {len(project_ids)} submissions into {merged.id}")
        return merged, bool(self.api_key)

    # ── Views ──────────────────────────────────────────────────────

    def reputations(self) -> List[CompanyReputation]:
        return compute_reputation(self.state.projects, self.state.analyses, self.state.loading_analyses)

    def pending_submissions(self) -> List[ProjectDelay]:
        return [p for p in self.state.projects if p.is_pending]

    def managed_projects(self) -> List[ProjectDelay]:
        return [p for p in self.state.projects if not p.is_pending]

    def company_names(self) -> List[str]:
        names = {p.company_name for p in self.state.projects} | set(self.state.companies)
        return sorted(names)

    def company_projects(self, company_name: str) -> List[ProjectDelay]:
        return [p for p in self.state.projects if p.company_name == company_name]

    def company_stats(self, company_name: str) -> DelayStats:
        return summarize(self.company_projects(company_name))

    def project_reputations(self, company_name: str) -> List[ProjectReputation]:
        return compute_project_reputations(self.state.projects, company_name)

    def project_submissions(self, project_name: str, company_name: str) -> List[ProjectDelay]:
        return [
            p for p in self.state.projects
            if p.project_name == project_name and p.company_name == company_name
        ]

    def submissions_by(self, email: str) -> List[ProjectDelay]:
        return [p for p in self.state.projects if p.submitter_email == email]

    def submissions_for_company(self, company_name: Optional[str]) -> List[ProjectDelay]:
        if not company_name:
            return []
        return [p for p in self.company_projects(company_name) if not p.is_rejected]

    # ── Settings ───────────────────────────────────────────────────

    def set_theme(self, theme: str):
        if theme not in THEMES:
            raise ValidationError(f"Tema inválido: {theme}")
        self.database.put_setting(SETTING_THEME, theme)
        self.state.theme = theme

    def save_api_key(self, api_key: Optional[str]):
        """Store the analysis key; a blank key removes it."""
        key = (api_key or "").strip()
        if key:
            self.database.put_setting(SETTING_API_KEY, key)
            self.state.api_key = key
        else:
            self.database.remove_setting(SETTING_API_KEY)
            self.state.api_key = None

    # ── AI analysis ────────────────────────────────────────────────

    def begin_analysis(self, company_name: str):
        """Flag a company as loading before the background job starts."""
        self.state.loading_analyses[company_name] = True

    def _store_analysis(self, company_name: str, result: AnalysisResult):
        self.database.put_company_analysis(company_name, result)
        self.state.analyses[company_name] = result

    def generate_company_analysis(self, company_name: str) -> Optional[AnalysisResult]:
        """Summarize a company's approved reports and cache the result.

        Service failures are cached as error results. Returns None when the
        company has no approved reports.
        """
        api_key = self.api_key
        if not api_key:
            logger.warning(f"Analysis requested for {company_name} without an API key")
            result = AnalysisResult(text=MISSING_KEY_MESSAGE, is_error=True)
            self._store_analysis(company_name, result)
            self.state.loading_analyses[company_name] = False
            return result

        approved = [p for p in self.company_projects(company_name) if p.is_approved]
        if not approved:
            self.state.loading_analyses[company_name] = False
            return None

        self.state.loading_analyses[company_name] = True
        try:
            reputation = CompanyReputation(name=company_name, projects=approved, stats=summarize(approved))
            try:
                text = self.analysis_service.analyze(reputation, api_key)
                result = AnalysisResult(text=text, is_error=text.startswith("Erro:"))
            except AnalysisServiceError as e:
                logger.warning(f"Analysis failed for {company_name}: {e}")
                result = AnalysisResult(text=str(e), is_error=True)
            self._store_analysis(company_name, result)
            return result
        finally:
            self.state.loading_analyses[company_name] = False
