"""Tables de la base : membres, paiements, transactions, budget, messages, journal d'envois."""

from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from pantheres_finance.db.database import Base


def _now() -> datetime.datetime:
    return datetime.datetime.now()


class Membre(Base):
    __tablename__ = "membres"

    id = Column(Integer, primary_key=True, index=True)
    nom_prenom = Column(String(150), nullable=False)
    telephone = Column(String(30))
    email = Column(String(150), index=True)
    statut = Column(String(20), nullable=False, default="Actif")  # Actif, Blessé, Arrêt/Départ
    role_joueur = Column(Boolean, nullable=False, default=False)
    role_bureau = Column(Boolean, nullable=False, default=False)
    fonction_bureau = Column(String(100))  # ex. "Président"
    cotisation_mensuelle = Column(Float, nullable=False, default=0.0)
    date_entree = Column(Date, default=datetime.date.today)
    created_at = Column(DateTime, default=_now)

    paiements = relationship(
        "Paiement",
        back_populates="membre",
        cascade="all, delete-orphan",
        order_by=lambda: [Paiement.annee, Paiement.mois],
    )


class Paiement(Base):
    __tablename__ = "paiements"

    id = Column(Integer, primary_key=True, index=True)
    membre_id = Column(Integer, ForeignKey("membres.id", ondelete="CASCADE"), nullable=False, index=True)
    mois = Column(Integer, nullable=False)  # 1-12
    annee = Column(Integer, nullable=False)
    montant = Column(Float, nullable=False)
    date_paiement = Column(Date, default=datetime.date.today)
    mode_paiement = Column(String(30), nullable=False, default="Espèces")
    created_at = Column(DateTime, default=_now)

    # Un seul paiement par membre, mois et année
    __table_args__ = (
        UniqueConstraint("membre_id", "mois", "annee", name="uq_paiement_membre_mois_annee"),
    )

    membre = relationship("Membre", back_populates="paiements")


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(10), nullable=False)  # Recette, Dépense
    categorie = Column(String(60), nullable=False)
    sous_categorie = Column(String(60))
    tiers = Column(String(150))
    membre_id = Column(Integer, ForeignKey("membres.id", ondelete="SET NULL"))
    libelle = Column(String(255), nullable=False)
    entree = Column(Float, nullable=False, default=0.0)
    sortie = Column(Float, nullable=False, default=0.0)
    mode_paiement = Column(String(30), nullable=False, default="Espèces")
    created_at = Column(DateTime, default=_now)

    membre = relationship("Membre")


class BudgetLigne(Base):
    __tablename__ = "budget"

    id = Column(Integer, primary_key=True, index=True)
    categorie = Column(String(60), nullable=False)
    type = Column(String(10), nullable=False)
    budget_alloue = Column(Float, nullable=False, default=0.0)
    periode_debut = Column(Date, nullable=False)
    periode_fin = Column(Date, nullable=False)


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    membre_id = Column(Integer, ForeignKey("membres.id", ondelete="SET NULL"), index=True)
    parent_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), index=True)
    sujet = Column(String(200), nullable=False)
    contenu = Column(Text, nullable=False)
    type_message = Column(String(20), nullable=False, default="remarque")
    statut = Column(String(20), nullable=False, default="nouveau")
    is_from_tresorier = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_now, index=True)

    auteur = relationship("Membre")
    reponses = relationship(
        "Message",
        cascade="all, delete-orphan",
        order_by="Message.id",
    )


class NotificationLog(Base):
    __tablename__ = "notifications_log"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(40), nullable=False)  # relance_cotisation, confirmation_paiement, rapport_mensuel
    destinataire_email = Column(String(150), nullable=False)
    destinataire_id = Column(Integer)
    objet = Column(String(255), nullable=False)
    corps = Column(Text)
    statut = Column(String(10), nullable=False)  # success, failed
    error_message = Column(Text)
    created_at = Column(DateTime, default=_now)
