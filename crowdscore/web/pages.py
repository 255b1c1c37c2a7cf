"""
HTML Page Renderers
===================

Server-rendered pages built from f-string templates sharing one stylesheet.
Every interpolated value goes through ``esc`` first.
"""

from html import escape
from typing import Dict, List, Optional
from urllib.parse import quote

from ..domain.duplicates import group_key
from ..domain.merge import SELECTABLE_FIELDS, field_options
from ..domain.models import (
    AnalysisResult,
    CompanyReputation,
    DelayStats,
    ProjectDelay,
    ProjectReputation,
    SubmissionStatus,
    User,
    UserRole,
)
from ..domain.reputation import format_delay


def esc(value) -> str:
    return escape("" if value is None else str(value))


def url_part(value: str) -> str:
    return quote(value, safe="")


# ══════════════════════════════════════════════════════════════════
#  SHARED CSS
# ══════════════════════════════════════════════════════════════════

SHARED_CSS = """
    :root {
        --bg: #fafaf9;
        --bg-card: #ffffff;
        --border: #d6d3d1;
        --text: #0c0a09;
        --text-muted: #57534e;
        --accent: #059669;
        --accent-dark: #065f46;
        --danger: #dc2626;
        --warning: #d97706;
    }
    body.dark {
        --bg: #1c1917;
        --bg-card: rgba(255,255,255,0.08);
        --border: rgba(255,255,255,0.15);
        --text: #fafaf9;
        --text-muted: #d6d3d1;
        --accent-dark: #a7f3d0;
    }
    @media (prefers-color-scheme: dark) {
        body.system {
            --bg: #1c1917;
            --bg-card: rgba(255,255,255,0.08);
            --border: rgba(255,255,255,0.15);
            --text: #fafaf9;
            --text-muted: #d6d3d1;
            --accent-dark: #a7f3d0;
        }
    }

    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
        font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        background: var(--bg);
        color: var(--text);
        min-height: 100vh;
    }
    a { color: var(--accent); }
    header {
        display: flex; justify-content: space-between; align-items: center;
        padding: 16px 32px; border-bottom: 1px solid var(--border);
    }
    header h1 { font-size: 22px; color: var(--accent-dark); }
    nav { display: flex; gap: 16px; align-items: center; }
    main { max-width: 1100px; margin: 0 auto; padding: 32px 16px 96px; }
    h2 { color: var(--accent-dark); margin-bottom: 16px; }
    h3 { color: var(--accent-dark); margin: 24px 0 12px; }

    .card {
        background: var(--bg-card);
        border: 1px solid var(--border);
        border-radius: 12px;
        padding: 20px;
        margin-bottom: 16px;
    }
    .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 16px; }
    .muted { color: var(--text-muted); font-size: 13px; }
    .stars { color: #f59e0b; letter-spacing: 1px; }
    .delay-ok { color: #16a34a; font-weight: 700; }
    .delay-warn { color: var(--warning); font-weight: 700; }
    .delay-bad { color: var(--danger); font-weight: 700; }
    .rank { float: right; font-weight: 800; font-size: 20px; }

    .btn {
        background: var(--accent); color: #fff; border: none;
        padding: 8px 16px; border-radius: 8px; font-weight: 600;
        cursor: pointer; text-decoration: none; display: inline-block; font-size: 14px;
    }
    .btn-ghost { background: transparent; color: var(--text); border: 1px solid var(--border); }
    .btn-danger { background: var(--danger); }

    .badge { padding: 2px 8px; border-radius: 6px; font-size: 11px; font-weight: 600; }
    .badge.pending  { background: #fef3c7; color: #92400e; }
    .badge.approved { background: #dcfce7; color: #166534; }
    .badge.rejected { background: #fee2e2; color: #991b1b; }

    input, select, textarea {
        background: var(--bg-card); color: var(--text);
        border: 1px solid var(--border); border-radius: 8px;
        padding: 8px 12px; font-size: 14px; font-family: inherit; width: 100%;
    }
    input[type="radio"], input[type="checkbox"] { width: auto; }
    label { display: block; font-size: 13px; color: var(--text-muted); margin: 10px 0 4px; }
    .inline { display: inline-block; }
    .inline input, .inline select { width: auto; }

    table { width: 100%; border-collapse: collapse; }
    th, td { text-align: left; padding: 8px; border-bottom: 1px solid var(--border); font-size: 14px; }

    .alert { padding: 12px 16px; border-radius: 8px; margin-bottom: 20px; }
    .alert-info { background: #d1fae5; color: #065f46; }
    .alert-error { background: #fee2e2; color: #991b1b; }
    blockquote { border-left: 4px solid var(--accent); padding: 6px 12px; margin: 6px 0; font-style: italic; white-space: pre-line; }
    .subnav { display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 24px; }
"""

STATUS_LABELS = {
    SubmissionStatus.APPROVED: "Aprovado",
    SubmissionStatus.REJECTED: "Rejeitado",
    SubmissionStatus.PENDING: "Pendente",
}

ROLE_LABELS = {
    UserRole.SITE_ADMIN: "Admin do Site",
    UserRole.COMPANY_ADMIN: "Admin de Empresa",
    UserRole.USER: "Usuário",
}

MERGE_FIELD_LABELS = {
    "submitter_email": "Email do Remetente",
    "company_name": "Nome da Empresa",
    "project_name": "Nome do Projeto",
    "crowdfunding_link": "Link do Financiamento",
    "promised_date": "Data Prometida",
    "actual_date": "Data de Entrega Real",
    "would_buy_again": "Compraria Novamente",
}

ADMIN_VIEWS = [
    ("pending", "Pendentes"),
    ("duplicates", "Duplicados"),
    ("submissions", "Envios"),
    ("users", "Usuários"),
    ("settings", "Configurações"),
    ("account", "Minha Conta"),
]


# ══════════════════════════════════════════════════════════════════
#  FRAGMENTS
# ══════════════════════════════════════════════════════════════════

def stars(rating: float) -> str:
    full = int(rating)
    half = (rating - full) >= 0.5
    empty = 5 - full - (1 if half else 0)
    return f'<span class="stars" title="{rating:.1f}">{"★" * full}{"⯪" if half else ""}{"☆" * empty}</span>'


def delay_class(days: float) -> str:
    if days > 90:
        return "delay-bad"
    if days > 30:
        return "delay-warn"
    return "delay-ok"


def status_badge(status: SubmissionStatus) -> str:
    return f'<span class="badge {status.value.lower()}">{STATUS_LABELS[status]}</span>'


def would_buy_again_label(value: Optional[bool]) -> str:
    if value is True:
        return "Compraria novamente"
    if value is False:
        return "Não compraria"
    return ""


def _alerts(message: str = "", error: str = "") -> str:
    html = ""
    if message:
        html += f'<div class="alert alert-info">{esc(message)}</div>'
    if error:
        html += f'<div class="alert alert-error">{esc(error)}</div>'
    return html


def _analysis_box(analysis: Optional[AnalysisResult], loading: bool) -> str:
    if loading:
        return '<div class="card muted">Gerando análise com IA...</div>'
    if not analysis:
        return ""
    if analysis.is_error:
        return f'<div class="alert alert-error">{esc(analysis.text)}</div>'
    return f'<div class="card"><strong>Análise da IA</strong><p>{esc(analysis.text)}</p></div>'


def _quotes(project: ProjectDelay) -> str:
    html = ""
    if project.comment:
        html += f'<p class="muted">Comentário do Apoiador:</p><blockquote>{esc(project.comment)}</blockquote>'
    if project.company_reply:
        html += f'<p class="muted">Resposta da Empresa:</p><blockquote>{esc(project.company_reply)}</blockquote>'
    if project.user_rebuttal:
        html += f'<p class="muted">Tréplica do Apoiador:</p><blockquote>{esc(project.user_rebuttal)}</blockquote>'
    return html


def _option(value: str, label: str, selected: bool) -> str:
    return f'<option value="{esc(value)}"{" selected" if selected else ""}>{esc(label)}</option>'


def _bool_select(name: str, value: Optional[bool], allow_unset: bool = True) -> str:
    options = ""
    if allow_unset:
        options += _option("", "Não informado", value is None)
    options += _option("true", "Sim", value is True)
    options += _option("false", "Não", value is False)
    return f'<select name="{name}">{options}</select>'


def _company_datalist(company_names: List[str]) -> str:
    options = "".join(f'<option value="{esc(n)}">' for n in company_names)
    return f'<datalist id="companies">{options}</datalist>'


# ══════════════════════════════════════════════════════════════════
#  LAYOUT
# ══════════════════════════════════════════════════════════════════

def render_layout(title: str, body: str, user: Optional[User] = None, theme: str = "system",
                  message: str = "", error: str = "", pending_count: int = 0) -> str:
    if user:
        badge = f" ({pending_count})" if user.is_site_admin and pending_count else ""
        account = f"""
            <a href="/dashboard">Painel{badge}</a>
            <span class="muted">{esc(user.first_name)}</span>
            <a href="/logout">Sair</a>"""
    else:
        account = '<a href="/login">Entrar</a> <a href="/register">Cadastrar</a>'

    theme_options = "".join(
        _option(value, label, theme == value)
        for value, label in (("light", "Claro"), ("dark", "Escuro"), ("system", "Sistema"))
    )

    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(title)} - CrowdScore</title>
    <style>{SHARED_CSS}</style>
</head>
<body class="{esc(theme)}">
    <header>
        <h1><a href="/" style="text-decoration:none;color:inherit">CrowdScore</a></h1>
        <nav>
            <a href="/">Ranking</a>
            <a href="/submit">Enviar Atraso</a>
            {account}
            <form method="post" action="/settings/theme" class="inline">
                <select name="theme" onchange="this.form.submit()">{theme_options}</select>
            </form>
        </nav>
    </header>
    <main>
        {_alerts(message, error)}
        {body}
    </main>
</body>
</html>"""


def render_fatal_page(message: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head><meta charset="UTF-8"><title>CrowdScore</title><style>{SHARED_CSS}</style></head>
<body><main><div class="alert alert-error">{esc(message)}</div>
<a class="btn" href="/">Recarregar</a></main></body>
</html>"""


# ══════════════════════════════════════════════════════════════════
#  PUBLIC PAGES
# ══════════════════════════════════════════════════════════════════

def render_ranking(reputations: List[CompanyReputation], user: Optional[User], has_api_key: bool) -> str:
    if not reputations:
        return '<div class="card">Nenhuma empresa com envios aprovados ainda.</div>'

    cards = []
    for rank, rep in enumerate(reputations, start=1):
        analysis = ""
        if has_api_key:
            analysis = _analysis_box(rep.analysis, rep.is_analysis_loading)
            can_generate = (user and user.is_site_admin and not rep.analysis
                            and not rep.is_analysis_loading)
            if can_generate:
                analysis += f"""
                <form method="post" action="/admin/analysis/{url_part(rep.name)}">
                    <button class="btn" type="submit">Gerar Análise IA</button>
                </form>"""
        cards.append(f"""
        <div class="card">
            <span class="rank">#{rank}</span>
            <h3><a href="/company/{url_part(rep.name)}">{esc(rep.name)}</a></h3>
            <p class="muted">{rep.project_count} projeto(s) rastreado(s)</p>
            <p>{stars(rep.average_rating)} ({rep.average_rating:.1f})</p>
            <p>Atraso Médio: <span class="{delay_class(rep.average_delay_days)}">{esc(format_delay(rep.average_delay_days))}</span></p>
            {analysis}
        </div>""")
    return f'<h2>Ranking de Empresas</h2><div class="grid">{"".join(cards)}</div>'


def _stats_block(stats: DelayStats, show_on_time: bool = True) -> str:
    buy_again = (f"{stats.would_buy_again_percentage:.0f}% "
                 f'<span class="muted">de {stats.would_buy_again_responses} '
                 f'{"resposta" if stats.would_buy_again_responses == 1 else "respostas"}</span>'
                 if stats.would_buy_again_responses else "N/A")
    on_time = f"<p>Entregas no prazo: <strong>{stats.on_time_percentage:.0f}%</strong></p>" if show_on_time else ""
    return f"""
    <div class="card">
        <p>Avaliação Média: {stars(stats.average_rating)} <strong>{stats.average_rating:.1f}</strong>
           <span class="muted">de {stats.count} {"avaliação" if stats.count == 1 else "avaliações"}</span></p>
        <p>Atraso Médio: <span class="{delay_class(stats.average_delay_days)}">{esc(format_delay(stats.average_delay_days))}</span></p>
        {on_time}
        <p>Comprariam Novamente: <strong>{buy_again}</strong></p>
    </div>"""


def render_company_detail(company_name: str, stats: DelayStats, projects: List[ProjectReputation],
                          analysis: Optional[AnalysisResult], loading: bool, has_api_key: bool,
                          search: str = "") -> str:
    if stats.count:
        metrics = _stats_block(stats)
    else:
        metrics = '<div class="card">Ainda não há envios aprovados para esta empresa.</div>'

    term = search.lower()
    rows = "".join(
        f"""<tr>
            <td><a href="/company/{url_part(company_name)}/project/{url_part(p.project_name)}">{esc(p.project_name)}</a></td>
            <td>{p.complaint_count}</td>
            <td class="{delay_class(p.average_delay_days)}">{esc(format_delay(p.average_delay_days))}</td>
        </tr>"""
        for p in projects if term in p.project_name.lower()
    )
    table = (f"<table><tr><th>Projeto</th><th>Reclamações</th><th>Atraso Médio</th></tr>{rows}</table>"
             if rows else '<p class="muted">Nenhum projeto encontrado.</p>')

    return f"""
    <a class="btn btn-ghost" href="/">&larr; Voltar ao Ranking</a>
    <h2 style="margin-top:16px">{esc(company_name)}</h2>
    {metrics}
    {_analysis_box(analysis, loading) if has_api_key else ""}
    <h3>Projetos</h3>
    <form method="get" class="inline"><input type="search" name="q" value="{esc(search)}" placeholder="Buscar por projeto..."></form>
    {table}"""


def render_project_detail(project_name: str, company_name: str, submissions: List[ProjectDelay],
                          stats: DelayStats, users: Dict[str, User]) -> str:
    approved = [s for s in submissions if s.is_approved]
    link = submissions[0].crowdfunding_link if submissions else "#"

    metrics = (_stats_block(stats, show_on_time=False) if approved else
               '<div class="card">Ainda não há avaliações aprovadas para calcular as métricas deste projeto.</div>')

    cards = []
    for s in approved:
        submitter = users.get(s.submitter_email)
        display = f"{submitter.full_name[:1].upper()}." if submitter and submitter.full_name else "Anônimo"
        cards.append(f"""
        <div class="card">
            {stars(s.rating)} <span class="muted">Enviado por: {esc(display)} {esc(would_buy_again_label(s.would_buy_again))}</span>
            {_quotes(s)}
        </div>""")
    listing = "".join(cards) or '<div class="card">Ainda não há reclamações públicas para este projeto.</div>'

    return f"""
    <a class="btn btn-ghost" href="/company/{url_part(company_name)}">&larr; Voltar para a Empresa</a>
    <h2 style="margin-top:16px">{esc(project_name)}</h2>
    <p>por <strong>{esc(company_name)}</strong> &middot; <a href="{esc(link)}" target="_blank" rel="noopener noreferrer">Ver Página do Financiamento</a></p>
    {metrics}
    <h3>Reclamações Registradas</h3>
    {listing}"""


# ══════════════════════════════════════════════════════════════════
#  AUTH AND SUBMISSION FORMS
# ══════════════════════════════════════════════════════════════════

def render_login_form() -> str:
    return """
    <div class="card" style="max-width:420px;margin:0 auto">
        <h2>Acessar Painel</h2>
        <form method="post" action="/login">
            <label>E-mail</label><input type="email" name="email" required>
            <label>Senha</label><input type="password" name="password" required>
            <p style="margin-top:16px"><button class="btn" type="submit">Entrar</button></p>
        </form>
        <p class="muted" style="margin-top:16px">Não tem conta? <a href="/register">Cadastre-se</a></p>
    </div>"""


def render_register_form() -> str:
    return """
    <div class="card" style="max-width:420px;margin:0 auto">
        <h2>Criar Conta</h2>
        <form method="post" action="/register">
            <label>Nome completo</label><input type="text" name="full_name" required>
            <label>Data de nascimento</label><input type="date" name="birth_date" required>
            <label>E-mail</label><input type="email" name="email" required>
            <label>Senha</label><input type="password" name="password" required>
            <p style="margin-top:16px"><button class="btn" type="submit">Cadastrar</button></p>
        </form>
        <p class="muted" style="margin-top:16px">Já tem conta? <a href="/login">Entrar</a></p>
    </div>"""


def render_submission_form(company_names: List[str], values: Optional[dict] = None) -> str:
    v = values or {}
    return f"""
    <div class="card" style="max-width:640px;margin:0 auto">
        <h2>Relatar Atraso de Entrega</h2>
        <form method="post" action="/submit">
            <label>Empresa *</label>
            <input type="text" name="company_name" list="companies" value="{esc(v.get('company_name'))}" required>
            {_company_datalist(company_names)}
            <label>Projeto *</label><input type="text" name="project_name" value="{esc(v.get('project_name'))}" required>
            <label>Link do financiamento *</label><input type="url" name="crowdfunding_link" value="{esc(v.get('crowdfunding_link'))}" required>
            <label>Data prometida *</label><input type="date" name="promised_date" value="{esc(v.get('promised_date'))}" required>
            <label>Data de entrega (deixe em branco se ainda não entregue)</label>
            <input type="date" name="actual_date" value="{esc(v.get('actual_date'))}">
            <label>Avaliação (0.5 a 5) *</label>
            <input type="number" name="rating" min="0.5" max="5" step="0.5" value="{esc(v.get('rating'))}" required>
            <label>Comentário</label><textarea name="comment" rows="3">{esc(v.get('comment'))}</textarea>
            <label>Compraria novamente?</label>{_bool_select("would_buy_again", v.get("would_buy_again", True), allow_unset=False)}
            <p style="margin-top:16px"><button class="btn" type="submit">Enviar</button></p>
        </form>
    </div>"""


def render_account_form(user: User) -> str:
    return f"""
    <div class="card" style="max-width:480px">
        <h3>Minha Conta</h3>
        <p class="muted">{esc(user.email)} &middot; {ROLE_LABELS[user.role]}</p>
        <form method="post" action="/account">
            <label>Nome completo</label><input type="text" name="full_name" value="{esc(user.full_name)}" required>
            <label>Nova senha (opcional)</label><input type="password" name="password">
            <p style="margin-top:16px"><button class="btn" type="submit">Salvar</button></p>
        </form>
    </div>"""


# ══════════════════════════════════════════════════════════════════
#  SITE ADMIN DASHBOARD
# ══════════════════════════════════════════════════════════════════

def _admin_nav(current: str, pending_count: int) -> str:
    links = []
    for view, label in ADMIN_VIEWS:
        if view == "pending" and pending_count:
            label = f"{label} ({pending_count})"
        css = "btn" if view == current else "btn btn-ghost"
        links.append(f'<a class="{css}" href="/dashboard?view={view}">{esc(label)}</a>')
    return f'<div class="subnav">{"".join(links)}</div>'


def render_pending_view(pending: List[ProjectDelay], users: Dict[str, User]) -> str:
    if not pending:
        return "<p>Nenhum envio pendente.</p>"
    cards = []
    for p in pending:
        submitter = users.get(p.submitter_email)
        cards.append(f"""
        <div class="card">
            <h3>{esc(p.project_name)} <span class="muted">({esc(p.company_name)})</span></h3>
            <p class="muted">Enviado por {esc(submitter.full_name if submitter else p.submitter_email)}
               &middot; Prometido: {esc(p.promised_date)} &middot; Entregue: {esc(p.actual_date or "N/A")}</p>
            <p>{stars(p.rating)} <a href="{esc(p.crowdfunding_link)}" target="_blank" rel="noopener noreferrer">{esc(p.crowdfunding_link)}</a></p>
            {_quotes(p)}
            <form method="post" action="/admin/submission/{url_part(p.id)}/approve" class="inline">
                <button class="btn" type="submit">Aprovar</button>
            </form>
            <form method="post" action="/admin/submission/{url_part(p.id)}/reject" class="inline">
                <input type="text" name="reason" placeholder="Motivo da rejeição (opcional)">
                <button class="btn btn-danger" type="submit">Rejeitar</button>
            </form>
            <a class="btn btn-ghost" href="/admin/submission/{url_part(p.id)}/edit">Editar</a>
        </div>""")
    return "".join(cards)


def _merge_form(group: List[ProjectDelay]) -> str:
    ids = ",".join(m.id for m in group)
    fields_html = []
    for name in SELECTABLE_FIELDS:
        options = field_options(group, name)
        label = MERGE_FIELD_LABELS.get(name, name)
        if len(options) <= 1:
            value = options[0][0] if options else "N/A"
            fields_html.append(f"<label>{esc(label)}</label><p>{esc(value)}</p>")
            continue
        radios = "".join(
            f"""<div><input type="radio" name="pick_{name}" value="{esc(member_id)}"{" checked" if i == 0 else ""}>
                {esc(value)}</div>"""
            for i, (value, member_id) in enumerate(options)
        )
        fields_html.append(f"<label>{esc(label)}</label>{radios}")
    return f"""
    <details>
        <summary>Mesclar envios</summary>
        <p class="muted">Comentários e respostas serão combinados, e a nota será uma média.</p>
        <form method="post" action="/admin/duplicates/merge">
            <input type="hidden" name="ids" value="{esc(ids)}">
            {"".join(fields_html)}
            <p style="margin-top:12px"><button class="btn" type="submit">Salvar Mesclagem</button></p>
        </form>
    </details>"""


def render_duplicates_view(groups: List[List[ProjectDelay]], users: Dict[str, User]) -> str:
    if not groups:
        return "<p>Nenhum envio duplicado encontrado.</p>"
    cards = []
    for group in groups:
        first = group[0]
        members = "".join(
            f"""<li>ID: {esc(p.id)}, Status: {STATUS_LABELS[p.status]},
                Remetente: {esc(users[p.submitter_email].first_name if p.submitter_email in users else p.submitter_email)}
                <a href="/admin/submission/{url_part(p.id)}/edit">Editar</a></li>"""
            for p in group
        )
        cards.append(f"""
        <div class="card">
            <h3>{esc(first.project_name)}</h3>
            <p class="muted">Encontrados {len(group)} envios com a mesma URL.</p>
            <p><a href="{esc(first.crowdfunding_link)}" target="_blank" rel="noopener noreferrer">{esc(first.crowdfunding_link)}</a></p>
            <ul style="margin:12px 0 12px 20px">{members}</ul>
            <form method="post" action="/admin/duplicates/dismiss" class="inline">
                <input type="hidden" name="key" value="{esc(group_key(group))}">
                <button class="btn btn-ghost" type="submit">Dispensar</button>
            </form>
            {_merge_form(group)}
        </div>""")
    return "".join(cards)


def render_submissions_view(projects: List[ProjectDelay]) -> str:
    if not projects:
        return "<p>Nenhum envio gerenciado.</p>"
    rows = "".join(
        f"""<tr>
            <td>{esc(p.project_name)}</td><td>{esc(p.company_name)}</td>
            <td>{status_badge(p.status)}</td><td>{p.rating:.1f}</td>
            <td><a href="/admin/submission/{url_part(p.id)}/edit">Editar</a></td>
        </tr>"""
        for p in projects
    )
    return f"<table><tr><th>Projeto</th><th>Empresa</th><th>Status</th><th>Nota</th><th></th></tr>{rows}</table>"


def render_users_view(users: List[User]) -> str:
    rows = "".join(
        f"""<tr>
            <td>{esc(u.full_name)}</td><td>{esc(u.email)}</td>
            <td>{ROLE_LABELS[u.role]}{f" ({esc(u.company_name)})" if u.company_name else ""}</td>
            <td><a href="/admin/users/edit?email={url_part(u.email)}">Editar</a></td>
        </tr>"""
        for u in users
    )
    return f"""
    <p style="margin-bottom:12px"><a class="btn" href="/admin/users/edit">Novo Usuário</a></p>
    <table><tr><th>Nome</th><th>E-mail</th><th>Tipo</th><th></th></tr>{rows}</table>"""


def render_settings_view(api_key: Optional[str]) -> str:
    masked = f"{api_key[:4]}…" if api_key else "nenhuma"
    return f"""
    <div class="card" style="max-width:560px">
        <h3>Chave de API (Gemini)</h3>
        <p class="muted">Chave atual: {esc(masked)}. Deixe em branco para remover.</p>
        <form method="post" action="/admin/settings/api-key">
            <input type="password" name="api_key" placeholder="Cole a chave de API">
            <p style="margin-top:12px"><button class="btn" type="submit">Salvar</button></p>
        </form>
    </div>"""


def render_admin_dashboard(view: str, pending_count: int, content: str) -> str:
    return f"<h2>Painel do Administrador</h2>{_admin_nav(view, pending_count)}{content}"


def render_edit_submission(project: ProjectDelay, company_names: List[str]) -> str:
    status_options = "".join(_option(s.value, STATUS_LABELS[s], project.status is s) for s in SubmissionStatus)
    return f"""
    <div class="card" style="max-width:640px;margin:0 auto">
        <h2>Editar Envio</h2>
        <form method="post" action="/admin/submission/{url_part(project.id)}/edit">
            <label>Empresa</label>
            <input type="text" name="company_name" list="companies" value="{esc(project.company_name)}" required>
            {_company_datalist(company_names)}
            <label>Projeto</label><input type="text" name="project_name" value="{esc(project.project_name)}" required>
            <label>Link</label><input type="text" name="crowdfunding_link" value="{esc(project.crowdfunding_link)}">
            <label>Data prometida</label><input type="date" name="promised_date" value="{esc(project.promised_date)}" required>
            <label>Data de entrega</label><input type="date" name="actual_date" value="{esc(project.actual_date)}">
            <label>Status</label><select name="status">{status_options}</select>
            <label>Avaliação</label><input type="number" name="rating" min="0" max="5" step="any" value="{project.rating:g}">
            <label>Comentário</label><textarea name="comment" rows="3">{esc(project.comment)}</textarea>
            <label>Resposta da empresa</label><textarea name="company_reply" rows="2">{esc(project.company_reply)}</textarea>
            <label>Tréplica</label><textarea name="user_rebuttal" rows="2">{esc(project.user_rebuttal)}</textarea>
            <label>Motivo da rejeição</label><input type="text" name="rejection_reason" value="{esc(project.rejection_reason)}">
            <label>Compraria novamente?</label>{_bool_select("would_buy_again", project.would_buy_again)}
            <p style="margin-top:16px">
                <button class="btn" type="submit">Salvar</button>
                <a class="btn btn-ghost" href="/dashboard?view=submissions">Cancelar</a>
            </p>
        </form>
    </div>"""


def render_edit_user(user: Optional[User], company_names: List[str]) -> str:
    is_new = user is None
    role_options = "".join(
        _option(r.value, ROLE_LABELS[r], (user.role if user else UserRole.USER) is r) for r in UserRole
    )
    email_field = (f'<input type="email" name="email" required>' if is_new else
                   f'<input type="hidden" name="email" value="{esc(user.email)}"><p>{esc(user.email)}</p>')
    return f"""
    <div class="card" style="max-width:560px;margin:0 auto">
        <h2>{"Novo Usuário" if is_new else "Editar Usuário"}</h2>
        <form method="post" action="/admin/users/save">
            <input type="hidden" name="is_new" value="{"true" if is_new else "false"}">
            <label>E-mail</label>{email_field}
            <label>Nome completo</label><input type="text" name="full_name" value="{esc(user.full_name if user else "")}" required>
            <label>Data de nascimento</label><input type="date" name="birth_date" value="{esc(user.birth_date if user else "")}">
            <label>Tipo de Conta</label><select name="role">{role_options}</select>
            <label>Empresa (para Admin de Empresa)</label>
            <input type="text" name="company_name" list="companies" value="{esc(user.company_name if user else "")}">
            {_company_datalist(company_names)}
            <label>{"Senha" if is_new else "Nova senha (opcional)"}</label><input type="password" name="password">
            <p style="margin-top:16px">
                <button class="btn" type="submit">Salvar</button>
                <a class="btn btn-ghost" href="/dashboard?view=users">Cancelar</a>
            </p>
        </form>
    </div>"""


# ══════════════════════════════════════════════════════════════════
#  COMPANY ADMIN AND USER DASHBOARDS
# ══════════════════════════════════════════════════════════════════

def _tabs(current: str) -> str:
    tabs = [("submissions", "Envios"), ("account", "Minha Conta")]
    return '<div class="subnav">' + "".join(
        f'<a class="{"btn" if v == current else "btn btn-ghost"}" href="/dashboard?view={v}">{label}</a>'
        for v, label in tabs
    ) + "</div>"


def render_company_admin_dashboard(user: User, view: str, projects: List[ProjectDelay],
                                   users: Dict[str, User]) -> str:
    if view == "account":
        content = render_account_form(user)
    elif not projects:
        content = "<p>Nenhum envio para sua empresa ainda.</p>"
    else:
        cards = []
        for p in projects:
            submitter = users.get(p.submitter_email)
            name = submitter.first_name if submitter else "Usuário"
            cards.append(f"""
            <div class="card">
                <h3>{esc(p.project_name)}</h3>
                <p class="muted">Enviado por: {esc(name)} ({esc(p.submitter_email)}) &middot; {status_badge(p.status)}</p>
                <p>{stars(p.rating)} &middot; Prometido em: {esc(p.promised_date)} &middot; Entregue em: {esc(p.actual_date or "N/A")}</p>
                {_quotes(p)}
                <form method="post" action="/company-admin/submission/{url_part(p.id)}/reply">
                    <label>Sua resposta</label>
                    <textarea name="reply" rows="3">{esc(p.company_reply)}</textarea>
                    <p style="margin-top:8px"><button class="btn" type="submit">Salvar Resposta</button></p>
                </form>
            </div>""")
        content = "".join(cards)
    return f"<h2>Painel da Empresa: {esc(user.company_name)}</h2>{_tabs(view)}{content}"


def render_user_dashboard(user: User, view: str, projects: List[ProjectDelay]) -> str:
    if view == "account":
        content = render_account_form(user)
    elif not projects:
        content = '<p>Você ainda não enviou nenhum relato. <a href="/submit">Enviar agora</a></p>'
    else:
        cards = []
        for p in projects:
            if p.is_rejected:
                reason = f"<p>Motivo: {esc(p.rejection_reason)}</p>" if p.rejection_reason else ""
                editor = f'<div class="alert alert-error"><strong>Este envio foi rejeitado.</strong>{reason}</div>'
            else:
                editor = f"""
                <form method="post" action="/my/submission/{url_part(p.id)}">
                    <label>Sua Avaliação (pode ser alterada)</label>
                    <input type="number" name="rating" min="0.5" max="5" step="any" value="{p.rating:g}">
                    <label>Sua Resposta (Tréplica)</label>
                    <textarea name="rebuttal" rows="3">{esc(p.user_rebuttal)}</textarea>
                    <label>Compraria novamente?</label>{_bool_select("would_buy_again", p.would_buy_again if p.would_buy_again is not None else True, allow_unset=False)}
                    <p style="margin-top:8px"><button class="btn" type="submit">Salvar</button></p>
                </form>"""
            reply = (f'<p class="muted">Resposta da Empresa:</p><blockquote>{esc(p.company_reply)}</blockquote>'
                     if p.company_reply else "")
            cards.append(f"""
            <div class="card">
                <h3>{esc(p.project_name)} {status_badge(p.status)}</h3>
                <p class="muted">Empresa: {esc(p.company_name)}</p>
                {reply}
                {editor}
            </div>""")
        content = "".join(cards)
    return f"<h2>Meus Envios</h2>{_tabs(view)}{content}"
