"""Tests d'intégration : fils de messages, réponses du trésorier et diffusion."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from pantheres_finance.auth.rbac import Role
from pantheres_finance.auth.session import AuthContext
from pantheres_finance.messaging import MessageEvent, MessageFeed
from pantheres_finance.models import AccesRefuseError, StatutMessage, TypeMessage, ValidationMetierError
from pantheres_finance.services.messages import (
    MessageData,
    can_see,
    create_thread,
    get_thread,
    list_threads,
    reply,
    to_event,
    update_statut,
)


@pytest.fixture
def feed() -> MessageFeed:
    return MessageFeed()


@pytest.fixture
def received(feed: MessageFeed) -> list[MessageEvent]:
    events: list[MessageEvent] = []
    feed.subscribe(events.append)
    return events


def _question() -> MessageData:
    return MessageData(sujet="Cotisation d'avril", contenu="J'ai payé en espèces, est-ce noté ?", type_message=TypeMessage.QUESTION)


class TestThreads:
    def test_create_publishes_event(
        self, session: Session, make_ctx, make_membre, feed: MessageFeed, received: list[MessageEvent]
    ) -> None:
        membre = make_membre()
        ctx = make_ctx(Role.JOUEUR, member_id=membre.id)

        message = create_thread(session, ctx, _question(), feed)

        assert message.statut == "nouveau"
        assert message.is_from_tresorier is False
        (event,) = received
        assert event.id == message.id
        assert event.thread_owner_id == membre.id
        assert event.auteur == "Youssef Alami"
        assert event.type_message == "question"

    def test_create_requires_member_record(self, session: Session, joueur_ctx: AuthContext) -> None:
        with pytest.raises(ValidationMetierError, match="Aucune fiche membre"):
            create_thread(session, joueur_ctx, _question())

    def test_create_requires_fields(self, session: Session, make_ctx, make_membre) -> None:
        ctx = make_ctx(Role.JOUEUR, member_id=make_membre().id)
        with pytest.raises(ValidationMetierError, match="Veuillez remplir tous les champs"):
            create_thread(session, ctx, MessageData(sujet=" ", contenu="texte"))

    def test_visibility(self, session: Session, make_ctx, make_membre, tresorier_ctx: AuthContext) -> None:
        youssef = make_membre()
        salma = make_membre("Salma Benali", "salma@example.com")
        ctx_youssef = make_ctx(Role.JOUEUR, member_id=youssef.id)
        ctx_salma = make_ctx(Role.JOUEUR, member_id=salma.id)

        fil = create_thread(session, ctx_youssef, _question())
        create_thread(session, ctx_salma, MessageData(sujet="Maillot", contenu="Taille M"))

        assert [m.sujet for m in list_threads(session, ctx_youssef)] == ["Cotisation d'avril"]
        assert len(list_threads(session, tresorier_ctx)) == 2
        with pytest.raises(AccesRefuseError):
            get_thread(session, ctx_salma, fil.id)
        assert get_thread(session, tresorier_ctx, fil.id).id == fil.id

    def test_no_member_record_sees_nothing(self, session: Session, make_ctx, make_membre, joueur_ctx: AuthContext) -> None:
        create_thread(session, make_ctx(Role.JOUEUR, member_id=make_membre().id), _question())
        assert list_threads(session, joueur_ctx) == []


class TestReplies:
    def test_tresorier_reply_resolves_thread(
        self,
        session: Session,
        make_ctx,
        make_membre,
        tresorier_ctx: AuthContext,
        feed: MessageFeed,
        received: list[MessageEvent],
    ) -> None:
        membre = make_membre()
        fil = create_thread(session, make_ctx(Role.JOUEUR, member_id=membre.id), _question(), feed)

        reponse = reply(session, tresorier_ctx, fil.id, "Oui, c'est enregistré.", feed)

        assert reponse.parent_id == fil.id
        assert reponse.sujet == "Re: Cotisation d'avril"
        assert reponse.type_message == "question"
        assert reponse.is_from_tresorier is True
        thread = get_thread(session, tresorier_ctx, fil.id)
        assert thread.statut == "resolu"
        assert [r.id for r in thread.reponses] == [reponse.id]
        assert received[-1].thread_id == fil.id
        assert received[-1].thread_owner_id == membre.id

    def test_author_follow_up_keeps_status(self, session: Session, make_ctx, make_membre) -> None:
        membre = make_membre()
        ctx = make_ctx(Role.JOUEUR, member_id=membre.id)
        fil = create_thread(session, ctx, _question())

        relance = reply(session, ctx, fil.id, "Une précision ?")
        assert relance.is_from_tresorier is False
        assert get_thread(session, ctx, fil.id).statut == "nouveau"

    def test_reply_to_reply_attaches_to_root(self, session: Session, make_ctx, make_membre, tresorier_ctx: AuthContext) -> None:
        ctx = make_ctx(Role.JOUEUR, member_id=make_membre().id)
        fil = create_thread(session, ctx, _question())
        premiere = reply(session, tresorier_ctx, fil.id, "Oui.")

        seconde = reply(session, ctx, premiere.id, "Merci !")
        assert seconde.parent_id == fil.id

    def test_other_member_cannot_reply(self, session: Session, make_ctx, make_membre) -> None:
        fil = create_thread(session, make_ctx(Role.JOUEUR, member_id=make_membre().id), _question())
        intrus = make_ctx(Role.BUREAU, member_id=make_membre("Salma Benali", "salma@example.com").id)
        with pytest.raises(AccesRefuseError):
            reply(session, intrus, fil.id, "Je m'en mêle")

    def test_empty_reply(self, session: Session, make_ctx, make_membre, tresorier_ctx: AuthContext) -> None:
        fil = create_thread(session, make_ctx(Role.JOUEUR, member_id=make_membre().id), _question())
        with pytest.raises(ValidationMetierError):
            reply(session, tresorier_ctx, fil.id, "   ")

    def test_update_statut(self, session: Session, make_ctx, make_membre, tresorier_ctx: AuthContext) -> None:
        ctx = make_ctx(Role.JOUEUR, member_id=make_membre().id)
        fil = create_thread(session, ctx, _question())

        assert update_statut(session, tresorier_ctx, fil.id, StatutMessage.EN_COURS).statut == "en_cours"
        with pytest.raises(AccesRefuseError):
            update_statut(session, ctx, fil.id, StatutMessage.RESOLU)


class TestCanSee:
    def test_filtering(self, session: Session, make_ctx, make_membre, tresorier_ctx: AuthContext) -> None:
        youssef = make_membre()
        salma = make_membre("Salma Benali", "salma@example.com")
        fil = create_thread(session, make_ctx(Role.JOUEUR, member_id=youssef.id), _question())
        event = to_event(fil, youssef.id)

        assert can_see(tresorier_ctx, event)
        assert can_see(make_ctx(Role.JOUEUR, member_id=youssef.id), event)
        assert not can_see(make_ctx(Role.BUREAU, member_id=salma.id), event)
        assert not can_see(make_ctx(Role.JOUEUR), event)
