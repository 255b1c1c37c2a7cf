"""Demo dataset written on the very first run (see Database.initialize)."""

from ..domain.models import ProjectDelay, SubmissionStatus, User, UserRole
from .passwords import hash_password

DEMO_PASSWORD = "password"


def _user(email, full_name, birth_date, role=UserRole.USER, company_name=None):
    return User(
        email=email,
        password_hash=hash_password(DEMO_PASSWORD),
        role=role,
        full_name=full_name,
        birth_date=birth_date,
        company_name=company_name,
    )


INITIAL_USERS = [
    _user("admin@admin.com", "Admin Geral", "1990-01-01", UserRole.SITE_ADMIN),
    _user("empresa@relogiosgeniais.com", "Gerente de Contas", "1990-01-01",
          UserRole.COMPANY_ADMIN, "Relógios Geniais"),
    _user("usuario@email.com", "Usuário de Teste", "1995-05-10"),
    _user("outro@email.com", "Outro Usuário", "1992-03-15"),
    _user("feliz@email.com", "Cliente Feliz", "1988-11-20"),
    _user("triste@email.com", "Apoiador Triste", "2000-07-07"),
    _user("jogador@email.com", "Jogador Mestre", "1998-09-12"),
    _user("novo@email.com", "Novo Apoiador", "2001-01-01"),
    _user("duplicado@email.com", "Pessoa Duplicada", "1999-04-04"),
]

PEBBLE_TIME = "https://www.kickstarter.com/projects/getpebble/pebble-time-awesome-smartwatch-no-compromises"

INITIAL_PROJECTS = [
    ProjectDelay(
        id="1", company_name="Relógios Geniais", project_name="Relógio Tempo Certo",
        crowdfunding_link=PEBBLE_TIME,
        promised_date="2015-05-30", actual_date="2015-07-20",
        status=SubmissionStatus.APPROVED, rating=4,
        comment="Atrasou um pouco, mas o produto é ótimo!",
        submitter_email="usuario@email.com", would_buy_again=True,
    ),
    ProjectDelay(
        id="2", company_name="Cooler & Cia", project_name="O Cooler Mais Legal",
        crowdfunding_link="https://www.kickstarter.com/projects/ryangrepper/coolest-cooler-21st-century-cooler-thats-actually",
        promised_date="2015-02-01", actual_date="2017-08-01",
        status=SubmissionStatus.APPROVED, rating=1.5,
        comment="Atraso inaceitável de mais de 2 anos.",
        submitter_email="outro@email.com", would_buy_again=False,
    ),
    ProjectDelay(
        id="3", company_name="Relógios Geniais", project_name="Relógio Geração 2",
        crowdfunding_link="https://www.kickstarter.com/projects/getpebble/pebble-2-time-2-and-core-an-entirely-new-3g-ultra",
        promised_date="2016-09-30", actual_date="2016-11-15",
        status=SubmissionStatus.APPROVED, rating=4.5,
        submitter_email="usuario@email.com", would_buy_again=True,
    ),
    ProjectDelay(
        id="4", company_name="Impressoras Pontuais", project_name="Impressora 3D Pro",
        crowdfunding_link="http://example.com/impressora",
        promised_date="2023-12-31", actual_date="2023-12-25",
        status=SubmissionStatus.APPROVED, rating=5,
        comment="Entregaram antes do prazo! Fantástico!",
        submitter_email="feliz@email.com", would_buy_again=True,
    ),
    ProjectDelay(
        id="5", company_name="VaporWare Inc.", project_name="O Gadget Fantasma",
        crowdfunding_link="http://example.com/vaporware",
        promised_date="2022-01-01",
        status=SubmissionStatus.APPROVED, rating=1,
        comment="Nunca entregaram. Fraude.",
        submitter_email="triste@email.com",
        company_reply="Estamos reestruturando o projeto e em breve teremos novidades.",
        would_buy_again=False,
    ),
    ProjectDelay(
        id="6", company_name="Mestres dos Tabuleiros", project_name="Robôs vs Minions",
        crowdfunding_link="http://example.com/jogos",
        promised_date="2024-03-01",
        status=SubmissionStatus.PENDING, rating=3,
        comment="Ainda no aguardo, mas a comunicação tem sido boa.",
        submitter_email="jogador@email.com", would_buy_again=True,
    ),
    ProjectDelay(
        id="7", company_name="Relógios Geniais", project_name="Smartwatch Fictício 3",
        crowdfunding_link="http://example.com/relogio3",
        promised_date="2024-05-01",
        status=SubmissionStatus.PENDING, rating=5,
        submitter_email="novo@email.com", would_buy_again=True,
    ),
    ProjectDelay(
        id="8", company_name="Relógios Geniais", project_name="Relógio Tempo Certo",
        crowdfunding_link=PEBBLE_TIME,
        promised_date="2015-06-15",
        status=SubmissionStatus.PENDING, rating=4,
        comment="Segundo relato para o mesmo projeto.",
        submitter_email="duplicado@email.com", would_buy_again=True,
    ),
]
