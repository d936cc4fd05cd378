"""Validation des corps de requête et conversion vers les données des services."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, field_validator, model_validator

from pantheres_finance.models import (
    ModePaiement,
    StatutMembre,
    StatutMessage,
    TypeMessage,
    TypeTransaction,
)
from pantheres_finance.services.budget import BudgetData
from pantheres_finance.services.membres import MembreData
from pantheres_finance.services.messages import MessageData
from pantheres_finance.services.paiements import PaiementData
from pantheres_finance.services.transactions import TransactionData


def _strip_required(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} obligatoire")
    return value


class MembreIn(BaseModel):
    nom_prenom: str
    telephone: str | None = None
    email: str | None = None
    statut: StatutMembre = StatutMembre.ACTIF
    role_joueur: bool = True
    role_bureau: bool = False
    fonction_bureau: str | None = None
    date_entree: datetime.date | None = None

    @field_validator("nom_prenom")
    @classmethod
    def validate_nom(cls, v: str) -> str:
        return _strip_required(v, "Nom")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError(f"Email invalide : '{v}'")
        return v

    def to_data(self, today: datetime.date) -> MembreData:
        return MembreData(
            nom_prenom=self.nom_prenom,
            telephone=self.telephone,
            email=self.email,
            statut=self.statut,
            role_joueur=self.role_joueur,
            role_bureau=self.role_bureau,
            fonction_bureau=self.fonction_bureau,
            date_entree=self.date_entree or today,
        )


class PaiementIn(BaseModel):
    mois: int
    annee: int
    montant: float
    mode_paiement: ModePaiement = ModePaiement.ESPECES
    date_paiement: datetime.date | None = None
    envoyer_confirmation: bool = False

    @field_validator("mois")
    @classmethod
    def validate_mois(cls, v: int) -> int:
        if not 1 <= v <= 12:
            raise ValueError(f"Mois invalide : {v} (attendu entre 1 et 12)")
        return v

    @field_validator("annee")
    @classmethod
    def validate_annee(cls, v: int) -> int:
        if not 2000 <= v <= 2100:
            raise ValueError(f"Année invalide : {v}")
        return v

    @field_validator("montant")
    @classmethod
    def validate_montant(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"Montant invalide : {v} (doit être positif)")
        return v

    def to_data(self, membre_id: int) -> PaiementData:
        return PaiementData(
            membre_id=membre_id,
            mois=self.mois,
            annee=self.annee,
            montant=self.montant,
            mode_paiement=self.mode_paiement,
            date_paiement=self.date_paiement,
        )


class TransactionIn(BaseModel):
    date: datetime.date
    type: TypeTransaction
    categorie: str
    libelle: str
    montant: float
    mode_paiement: ModePaiement = ModePaiement.ESPECES
    sous_categorie: str | None = None
    tiers: str | None = None
    membre_id: int | None = None

    @field_validator("categorie", "libelle")
    @classmethod
    def validate_texte(cls, v: str) -> str:
        return _strip_required(v, "Champ")

    @field_validator("montant")
    @classmethod
    def validate_montant(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(f"Montant invalide : {v} (doit être positif)")
        return v

    def to_data(self) -> TransactionData:
        return TransactionData(
            date=self.date,
            type=self.type,
            categorie=self.categorie,
            libelle=self.libelle,
            montant=self.montant,
            mode_paiement=self.mode_paiement,
            sous_categorie=self.sous_categorie,
            tiers=self.tiers,
            membre_id=self.membre_id,
        )


class BudgetIn(BaseModel):
    categorie: str
    type: TypeTransaction
    budget_alloue: float
    periode_debut: datetime.date
    periode_fin: datetime.date

    @field_validator("categorie")
    @classmethod
    def validate_categorie(cls, v: str) -> str:
        return _strip_required(v, "Catégorie")

    @field_validator("budget_alloue")
    @classmethod
    def validate_budget(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Budget alloué invalide : {v}")
        return v

    @model_validator(mode="after")
    def validate_periode(self) -> BudgetIn:
        if self.periode_fin < self.periode_debut:
            raise ValueError("La fin de période précède son début")
        return self

    def to_data(self) -> BudgetData:
        return BudgetData(
            categorie=self.categorie,
            type=self.type,
            budget_alloue=self.budget_alloue,
            periode_debut=self.periode_debut,
            periode_fin=self.periode_fin,
        )


class MessageIn(BaseModel):
    sujet: str
    contenu: str
    type_message: TypeMessage = TypeMessage.REMARQUE

    @field_validator("sujet", "contenu")
    @classmethod
    def validate_texte(cls, v: str) -> str:
        return _strip_required(v, "Champ")

    def to_data(self) -> MessageData:
        return MessageData(sujet=self.sujet, contenu=self.contenu, type_message=self.type_message)


class ReponseIn(BaseModel):
    contenu: str

    @field_validator("contenu")
    @classmethod
    def validate_contenu(cls, v: str) -> str:
        return _strip_required(v, "Réponse")


class StatutIn(BaseModel):
    statut: StatutMessage
