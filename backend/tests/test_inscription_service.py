from __future__ import annotations

import asyncio
import uuid
from datetime import date, timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from app.core.errors import AppHTTPException
from app.models.enums import InscriptionStatus as S
from app.models.formation import Formation
from app.models.inscription import Inscription
from app.models.setting import Setting
from app.schemas.inscriptions import InscriptionCreate, InscriptionUpdate
from app.services.inscription_service import ALLOWED_TRANSITIONS, InscriptionService, seat_delta
from app.services.settings_service import KEY_EMAIL_INSCRIPTION
from tests.helpers import FakeMailer, inscription_payload, make_formation, seats_of


async def _create(session_factory, mailer, formation_id, **overrides) -> Inscription:
    payload = InscriptionCreate(**inscription_payload(formation_id, **overrides))
    async with session_factory() as session:
        return await InscriptionService(session, mailer).create(payload)


async def _set_status(session_factory, mailer, inscription_id, status: S) -> Inscription:
    async with session_factory() as session:
        return await InscriptionService(session, mailer).update_status(inscription_id, status, actor="admin@test")


async def _remove(session_factory, mailer, inscription_id) -> None:
    async with session_factory() as session:
        await InscriptionService(session, mailer).remove(inscription_id, actor="admin@test")


async def _count_inscriptions(session_factory) -> int:
    async with session_factory() as session:
        return int((await session.execute(select(func.count(Inscription.id)))).scalar())


@pytest.mark.parametrize(
    "old,new,expected",
    [
        (S.PENDING, S.ACCEPTED, 0),
        (S.PENDING, S.REFUSED, 1),
        (S.PENDING, S.CANCELLED, 1),
        (S.ACCEPTED, S.REFUSED, 1),
        (S.ACCEPTED, S.CANCELLED, 1),
        (S.ACCEPTED, S.ACCEPTED, 0),
    ],
)
def test_seat_delta(old, new, expected):
    assert seat_delta(old, new) == expected


def test_terminal_statuses_have_no_transition():
    assert ALLOWED_TRANSITIONS[S.REFUSED] == frozenset()
    assert ALLOWED_TRANSITIONS[S.CANCELLED] == frozenset()


async def test_create_reserves_a_seat_and_notifies(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    assert inscription.status == S.PENDING.value
    assert inscription.notified is False
    assert await seats_of(session_factory, formation.id) == 9
    assert mailer.templates() == ["INSCRIPTION_CONFIRMATION", "INSCRIPTION_ADMIN_NOTIFICATION"]
    assert mailer.sent[0]["to"] == "lea.dupont@example.com"
    assert mailer.sent[0]["data"]["formation"]["available_seats"] == 9


async def test_create_on_full_formation_is_rejected_without_side_effect(session_factory, mailer):
    formation = await make_formation(session_factory, total_seats=3, available_seats=0)

    with pytest.raises(AppHTTPException) as exc:
        await _create(session_factory, mailer, formation.id)

    assert exc.value.status_code == 400
    assert exc.value.message == "Plus de places disponibles pour cette formation"
    assert await seats_of(session_factory, formation.id) == 0
    assert await _count_inscriptions(session_factory) == 0
    assert mailer.sent == []


async def test_create_for_unknown_formation_is_not_found(session_factory, mailer):
    with pytest.raises(AppHTTPException) as exc:
        await _create(session_factory, mailer, uuid.uuid4())
    assert exc.value.status_code == 404


async def test_accept_keeps_the_seat_reserved_at_creation(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    accepted = await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)
    assert accepted.status == S.ACCEPTED.value
    assert accepted.notified is True
    assert await seats_of(session_factory, formation.id) == 9

    # Même statut : aucune écriture
    again = await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)
    assert again.status == S.ACCEPTED.value
    assert await seats_of(session_factory, formation.id) == 9
    assert mailer.templates().count("INSCRIPTION_ACCEPTED") == 1


async def test_refusing_an_accepted_inscription_restores_one_seat(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

    refused = await _set_status(session_factory, mailer, inscription.id, S.REFUSED)

    assert refused.status == S.REFUSED.value
    assert await seats_of(session_factory, formation.id) == 10
    assert mailer.templates()[-1] == "INSCRIPTION_REFUSED"


@pytest.mark.parametrize("status", [S.REFUSED, S.CANCELLED])
async def test_closing_a_pending_inscription_releases_its_seat(session_factory, mailer, formation, status):
    inscription = await _create(session_factory, mailer, formation.id)

    await _set_status(session_factory, mailer, inscription.id, status)

    assert await seats_of(session_factory, formation.id) == 10


async def test_transition_out_of_terminal_status_is_rejected(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.CANCELLED)

    with pytest.raises(AppHTTPException) as exc:
        await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

    assert exc.value.status_code == 400
    assert exc.value.detail["details"] == {"from": "CANCELLED", "to": "ACCEPTED"}
    assert await seats_of(session_factory, formation.id) == 10


async def test_accepting_the_last_seat_holder_succeeds(session_factory, mailer):
    formation = await make_formation(session_factory, total_seats=1)
    inscription = await _create(session_factory, mailer, formation.id)
    assert await seats_of(session_factory, formation.id) == 0

    accepted = await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

    assert accepted.status == S.ACCEPTED.value
    assert await seats_of(session_factory, formation.id) == 0


async def test_seats_follow_registrations_over_a_full_lifecycle(session_factory, mailer, formation):
    first = await _create(session_factory, mailer, formation.id, email="a@example.com")
    second = await _create(session_factory, mailer, formation.id, email="b@example.com")
    third = await _create(session_factory, mailer, formation.id, email="c@example.com")

    await _set_status(session_factory, mailer, first.id, S.ACCEPTED)
    await _set_status(session_factory, mailer, second.id, S.ACCEPTED)
    await _set_status(session_factory, mailer, second.id, S.CANCELLED)
    await _remove(session_factory, mailer, third.id)

    # Seule la première inscription occupe encore une place
    assert await seats_of(session_factory, formation.id) == 9


async def test_deleting_accepted_inscription_restores_one_seat(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)
    assert await seats_of(session_factory, formation.id) == 9

    await _remove(session_factory, mailer, inscription.id)

    assert await seats_of(session_factory, formation.id) == 10
    assert await _count_inscriptions(session_factory) == 0
    assert mailer.templates()[-1] == "INSCRIPTION_CANCELLED"


async def test_deleting_pending_inscription_releases_its_seat(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    await _remove(session_factory, mailer, inscription.id)

    assert await seats_of(session_factory, formation.id) == 10


async def test_deleting_refused_inscription_keeps_seats(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.REFUSED)

    await _remove(session_factory, mailer, inscription.id)

    assert await seats_of(session_factory, formation.id) == 10


async def test_release_never_exceeds_total_seats(session_factory, mailer):
    formation = await make_formation(session_factory, total_seats=2)
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

    # Capacité réajustée à la main : toutes les places redeviennent libres
    async with session_factory() as session:
        row = await session.get(Formation, formation.id)
        row.available_seats = row.total_seats
        await session.commit()

    await _set_status(session_factory, mailer, inscription.id, S.CANCELLED)
    assert await seats_of(session_factory, formation.id) == 2


async def test_status_write_conflicts_when_status_changed_since_read(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    async with session_factory() as session:
        service = InscriptionService(session, mailer)
        stale = await service.find_one(inscription.id)  # noqa: F841 — keep the PENDING object in the identity map
        # L’objet chargé garde le statut PENDING ; le verrou SQLite est libéré
        await session.commit()

        await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

        with pytest.raises(AppHTTPException) as exc:
            await service.update_status(inscription.id, S.CANCELLED, actor="admin@test")

    assert exc.value.status_code == 409
    assert exc.value.code == "CONFLICT"
    assert exc.value.detail["details"]["expected_status"] == "PENDING"
    # La libération de place est annulée avec l’écriture du statut
    assert await seats_of(session_factory, formation.id) == 9
    async with session_factory() as session:
        assert (await InscriptionService(session, mailer).find_one(inscription.id)).status == S.ACCEPTED.value
    assert "INSCRIPTION_CANCELLED" not in mailer.templates()


async def test_concurrent_transitions_apply_exactly_once(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    results = await asyncio.gather(
        _set_status(session_factory, mailer, inscription.id, S.REFUSED),
        _set_status(session_factory, mailer, inscription.id, S.CANCELLED),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, Inscription)]
    failures = [r for r in results if isinstance(r, AppHTTPException)]
    assert len(successes) == 1
    assert len(failures) == 1
    # 409 si les deux lectures se chevauchent, 400 si la seconde voit déjà le statut final
    assert failures[0].status_code in (400, 409)
    assert await seats_of(session_factory, formation.id) == 10

    async with session_factory() as session:
        final = await InscriptionService(session, mailer).find_one(inscription.id)
    assert final.status == successes[0].status
    closing = [t for t in mailer.templates() if t in ("INSCRIPTION_REFUSED", "INSCRIPTION_CANCELLED")]
    assert len(closing) == 1


async def test_concurrent_creates_on_last_seat(session_factory, mailer):
    formation = await make_formation(session_factory, total_seats=5, available_seats=1)

    results = await asyncio.gather(
        _create(session_factory, mailer, formation.id, email="a@example.com"),
        _create(session_factory, mailer, formation.id, email="b@example.com"),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, Inscription)]
    failures = [r for r in results if isinstance(r, AppHTTPException)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].status_code == 400
    assert await seats_of(session_factory, formation.id) == 0
    assert await _count_inscriptions(session_factory) == 1


async def test_mail_failure_does_not_fail_create(session_factory, formation):
    inscription = await _create(session_factory, FakeMailer(fail=True), formation.id)

    assert inscription.status == S.PENDING.value
    assert await seats_of(session_factory, formation.id) == 9


async def test_admin_notification_follows_setting(session_factory, mailer, formation):
    async with session_factory() as session:
        session.add(Setting(key=KEY_EMAIL_INSCRIPTION, value="false"))
        await session.commit()

    await _create(session_factory, mailer, formation.id)

    assert mailer.templates() == ["INSCRIPTION_CONFIRMATION"]


async def test_update_routes_status_through_state_machine(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    async with session_factory() as session:
        updated = await InscriptionService(session, mailer).update(
            inscription.id,
            InscriptionUpdate(status=S.REFUSED, phone="07 00 00 00 00"),
            actor="admin@test",
        )

    assert updated.status == S.REFUSED.value
    assert updated.phone == "07 00 00 00 00"
    assert updated.notified is True
    assert await seats_of(session_factory, formation.id) == 10


async def test_update_status_email_carries_the_edited_fields(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    async with session_factory() as session:
        await InscriptionService(session, mailer).update(
            inscription.id,
            InscriptionUpdate(status=S.ACCEPTED, first_name="Lucie", email="lucie.dupont@example.com"),
            actor="admin@test",
        )

    last = mailer.sent[-1]
    assert last["template"] == "INSCRIPTION_ACCEPTED"
    assert last["to"] == "lucie.dupont@example.com"
    assert last["data"]["inscription"]["first_name"] == "Lucie"


async def test_update_with_stale_status_leaves_fields_and_seats_untouched(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)

    async with session_factory() as session:
        service = InscriptionService(session, mailer)
        stale = await service.find_one(inscription.id)  # noqa: F841 — keep the PENDING object in the identity map
        await session.commit()

        await _set_status(session_factory, mailer, inscription.id, S.ACCEPTED)

        with pytest.raises(AppHTTPException) as exc:
            await service.update(
                inscription.id,
                InscriptionUpdate(status=S.REFUSED, phone="07 00 00 00 00"),
                actor="admin@test",
            )

    assert exc.value.status_code == 409
    async with session_factory() as session:
        current = await InscriptionService(session, mailer).find_one(inscription.id)
    assert current.status == S.ACCEPTED.value
    assert current.phone == "06 12 34 56 78"
    assert await seats_of(session_factory, formation.id) == 9


async def test_update_rejects_disallowed_transition_before_writing_fields(session_factory, mailer, formation):
    inscription = await _create(session_factory, mailer, formation.id)
    await _set_status(session_factory, mailer, inscription.id, S.REFUSED)

    async with session_factory() as session:
        with pytest.raises(AppHTTPException) as exc:
            await InscriptionService(session, mailer).update(
                inscription.id,
                InscriptionUpdate(status=S.ACCEPTED, message="Relance"),
            )

    assert exc.value.status_code == 400
    async with session_factory() as session:
        current = await InscriptionService(session, mailer).find_one(inscription.id)
    assert (current.status, current.message) == (S.REFUSED.value, "Allergie au latex")


def test_update_rejects_future_birthdate():
    with pytest.raises(ValidationError):
        InscriptionUpdate(birthdate=date.today() + timedelta(days=1))

    assert InscriptionUpdate(birthdate=None).birthdate is None
