"""
Tests unitaires du contrôleur d'état de la liste des élèves.
student_service est patché : aucun accès BDD.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from app.controllers.student_list import StudentListController
from app.exceptions import TransportError
from app.schemas.student import StudentPage, StudentResponse
from app.services.notifier import ERROR
from app.services.student_service import StudentContext


# --- Helpers ---

def make_response(nome="Ana", curso=None) -> StudentResponse:
    now = datetime(2025, 1, 1, 10, 0)
    return StudentResponse(
        id=uuid.uuid4(), nome=nome, email=f"{nome.lower()}@ecole.be", matricula=nome.upper(),
        data_nascimento=None, curso=curso, created_at=now, updated_at=now,
    )


def make_page(items=None, total=None, page=1) -> StudentPage:
    items = items or []
    total = len(items) if total is None else total
    return StudentPage(items=items, total=total, page=page, page_size=10, pages=-(-total // 10))


def session_factory():
    db = MagicMock()

    @asynccontextmanager
    async def factory():
        yield db

    return factory


def make_controller(**kwargs) -> StudentListController:
    return StudentListController(session_factory(), StudentContext(user_id=uuid.uuid4()), page_size=10, **kwargs)


SERVICE = "app.controllers.student_list.student_service"


# --- Chargement ---

def test_etat_initial():
    c = make_controller()
    assert c.page == 1
    assert c.search_term == ""
    assert c.course_filter == ""
    assert c.students == []
    assert c.page_count == 0
    assert not c.can_go_previous
    assert not c.can_go_next


def test_refresh_applique_le_resultat():
    c = make_controller()
    page = make_page([make_response("Ana"), make_response("Bia")], total=25)
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=page)) as mock_list:
        assert asyncio.run(c.refresh()) is True

    assert c.total_count == 25
    assert [s.nome for s in c.students] == ["Ana", "Bia"]
    assert c.loading is False
    filters = mock_list.call_args.args[2]
    assert filters.page == 1
    assert filters.page_size == 10


def test_echec_conserve_les_donnees_precedentes():
    c = make_controller()
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page([make_response()], total=1))):
        asyncio.run(c.refresh())

    with patch(f"{SERVICE}.list_students", AsyncMock(side_effect=TransportError("down"))):
        assert asyncio.run(c.refresh()) is False

    assert [s.nome for s in c.students] == ["Ana"]
    assert c.total_count == 1
    assert c.loading is False
    assert c.context.notifier.last.level == ERROR
    assert c.context.notifier.last.message == "Erreur lors du chargement des élèves."


def test_donnees_visibles_pendant_le_chargement():
    c = make_controller()
    c.students = [make_response("Ancien")]
    seen = {}

    async def slow_list(db, ctx, filters):
        seen["loading"] = c.loading
        seen["students"] = [s.nome for s in c.students]
        return make_page([make_response("Nouveau")])

    with patch(f"{SERVICE}.list_students", side_effect=slow_list):
        asyncio.run(c.refresh())

    assert seen == {"loading": True, "students": ["Ancien"]}
    assert [s.nome for s in c.students] == ["Nouveau"]


def test_reponse_obsolete_ignoree():
    """Une requête plus ancienne qui se termine après la plus récente n'écrase pas le résultat."""
    c = make_controller()

    async def scenario():
        gate = asyncio.Event()

        async def fake_list(db, ctx, filters):
            if filters.search == "a":
                await gate.wait()
                return make_page([make_response("Obsolete")])
            return make_page([make_response("Recent")])

        with patch(f"{SERVICE}.list_students", side_effect=fake_list):
            first = asyncio.create_task(c.set_search_term("a"))
            await asyncio.sleep(0)
            await c.set_search_term("ab")
            assert c.loading is False
            gate.set()
            await first

    asyncio.run(scenario())

    assert [s.nome for s in c.students] == ["Recent"]
    assert c.search_term == "ab"


def test_echec_obsolete_sans_notification():
    """Une requête plus ancienne qui échoue après la plus récente ne notifie pas l'utilisateur."""
    c = make_controller()

    async def scenario():
        gate = asyncio.Event()

        async def fake_list(db, ctx, filters):
            if filters.search == "a":
                await gate.wait()
                raise TransportError("timeout")
            return make_page([make_response("Recent")])

        with patch(f"{SERVICE}.list_students", side_effect=fake_list):
            first = asyncio.create_task(c.set_search_term("a"))
            await asyncio.sleep(0)
            await c.set_search_term("ab")
            gate.set()
            await first

    asyncio.run(scenario())

    assert c.context.notifier.notifications == []
    assert [s.nome for s in c.students] == ["Recent"]
    assert c.loading is False


def test_reponse_ancienne_non_appliquee_apres_echec_recent():
    """Si la requête la plus récente échoue, une réponse plus ancienne arrivée ensuite n'est pas affichée."""
    c = make_controller()
    c.students = [make_response("Initial")]

    async def scenario():
        gate = asyncio.Event()

        async def fake_list(db, ctx, filters):
            if filters.search == "a":
                await gate.wait()
                return make_page([make_response("Obsolete")])
            raise TransportError("down")

        with patch(f"{SERVICE}.list_students", side_effect=fake_list):
            first = asyncio.create_task(c.set_search_term("a"))
            await asyncio.sleep(0)
            await c.set_search_term("ab")
            gate.set()
            await first

    asyncio.run(scenario())

    assert [s.nome for s in c.students] == ["Initial"]
    assert c.loading is False
    errors = [n.message for n in c.context.notifier.notifications if n.level == ERROR]
    assert errors == ["Erreur lors du chargement des élèves."]


# --- Filtres et pages ---

def test_filtres_declenchent_un_rechargement_sans_reinitialiser_la_page():
    c = make_controller()
    c.total_count = 25
    c.page = 3
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page(total=25))) as mock_list:
        asyncio.run(c.set_search_term("ana"))
        asyncio.run(c.set_course_filter("Droit"))

    assert mock_list.await_count == 2
    filters = mock_list.call_args.args[2]
    assert filters.search == "ana"
    assert filters.curso == "Droit"
    assert filters.page == 3


def test_reinitialisation_de_page_optionnelle():
    c = make_controller(reset_page_on_filter=True)
    c.page = 3
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page())) as mock_list:
        asyncio.run(c.set_search_term("ana"))
    assert c.page == 1
    assert mock_list.call_args.args[2].page == 1


def test_filtre_tous_les_cours():
    c = make_controller()
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page())) as mock_list:
        asyncio.run(c.set_course_filter(" "))
    assert c.course_filter == ""
    assert mock_list.call_args.args[2].curso == ""


def test_nombre_de_pages_et_bornes():
    c = make_controller()
    c.total_count = 25
    assert c.page_count == 3
    assert not c.can_go_previous
    assert c.can_go_next
    c.page = 3
    assert c.can_go_previous
    assert not c.can_go_next


def test_pages_hors_bornes_jamais_envoyees():
    c = make_controller()
    c.total_count = 25
    with patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page(total=25))) as mock_list:
        assert asyncio.run(c.go_to_page(0)) is False
        assert asyncio.run(c.go_to_page(4)) is False
        assert asyncio.run(c.previous_page()) is False
        mock_list.assert_not_awaited()

        assert asyncio.run(c.next_page()) is True
        assert c.page == 2
        assert mock_list.call_args.args[2].page == 2

        c.page = 3
        assert asyncio.run(c.next_page()) is False
    assert mock_list.await_count == 1


def test_cours_calcules_sur_la_page():
    c = make_controller()
    c.students = [make_response("A", "Droit"), make_response("B"), make_response("C", "Droit"), make_response("D", "Arts")]
    assert c.courses == ["Droit", "Arts"]


# --- Suppression ---

def test_suppression_exige_une_confirmation():
    c = make_controller()
    sid = uuid.uuid4()
    with patch(f"{SERVICE}.delete_student", AsyncMock()) as mock_delete, \
         patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page())) as mock_list:
        c.request_delete(sid)
        mock_delete.assert_not_awaited()

        c.cancel_delete()
        assert asyncio.run(c.confirm_delete()) is False
        mock_delete.assert_not_awaited()

        c.request_delete(sid)
        assert asyncio.run(c.confirm_delete()) is True

    assert mock_delete.call_args.args[2] == sid
    mock_list.assert_awaited_once()
    assert c.pending_delete_id is None


def test_suppression_en_echec_ne_recharge_pas():
    c = make_controller()
    with patch(f"{SERVICE}.delete_student", AsyncMock(side_effect=TransportError("x"))), \
         patch(f"{SERVICE}.list_students", AsyncMock(return_value=make_page())) as mock_list:
        c.request_delete(uuid.uuid4())
        assert asyncio.run(c.confirm_delete()) is False
    mock_list.assert_not_awaited()
