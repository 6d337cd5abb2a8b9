# Overview: Service-layer operations for players; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFound, ValidationError
from ..models import Player
from ..money import require_non_negative_cents
from .concurrency import lock_for_update, run_with_retry


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Player name is required")
    if len(cleaned) > 128:
        raise ValidationError("Player name is too long")
    return cleaned


def _new_player(name: str, cpf: str | None = None, phone: str | None = None,
                credit_limit_cents: int | None = None) -> Player:
    if credit_limit_cents is None:
        credit_limit_cents = current_app.config["DEFAULT_CREDIT_LIMIT_CENTS"]
    require_non_negative_cents(credit_limit_cents, "credit_limit_cents")

    player = Player(
        name=_clean_name(name),
        cpf=(cpf or "").strip() or None,
        phone=(phone or "").strip() or None,
        credit_balance_cents=0,
        credit_limit_cents=credit_limit_cents,
        is_active=True,
    )
    db.session.add(player)
    db.session.flush()
    return player


def create_player(
    name: str,
    cpf: str | None = None,
    phone: str | None = None,
    credit_limit_cents: int | None = None,
) -> Player:
    """
    Create a player. credit_limit_cents defaults to DEFAULT_CREDIT_LIMIT_CENTS.
    """
    def _op():
        player = _new_player(name, cpf=cpf, phone=phone, credit_limit_cents=credit_limit_cents)
        db.session.commit()
        return player

    return run_with_retry(_op)


def get_or_create_player(name: str) -> Player:
    """
    Find an active player by exact (case-insensitive) name, or create one.

    Used inline by the buy-in flow; flushes only, the caller commits.
    """
    cleaned = _clean_name(name)
    existing = db.session.query(Player).filter(
        db.func.lower(Player.name) == cleaned.lower(),
        Player.is_active.is_(True),
    ).order_by(Player.id).first()
    if existing:
        return existing
    return _new_player(cleaned)


def get_player(player_id: int) -> Player:
    player = db.session.get(Player, player_id)
    if not player:
        raise NotFound(f"Player {player_id} not found")
    return player


def lock_player(player_id: int) -> Player:
    """Load a player row with FOR UPDATE; every balance change goes through this."""
    player = lock_for_update(db.session.query(Player).filter_by(id=player_id)).first()
    if not player:
        raise NotFound(f"Player {player_id} not found")
    return player


def list_players(include_inactive: bool = False) -> list[Player]:
    query = db.session.query(Player)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Player.name).all()


def update_player(player_id: int, *, name: str | None = None, cpf: str | None = None,
                  phone: str | None = None) -> Player:
    def _op():
        player = lock_player(player_id)
        if name is not None:
            player.name = _clean_name(name)
        if cpf is not None:
            player.cpf = cpf.strip() or None
        if phone is not None:
            player.phone = phone.strip() or None
        db.session.commit()
        return player

    return run_with_retry(_op)


def set_credit_limit(player_id: int, credit_limit_cents: int) -> Player:
    """
    Change a player's fiado cap.

    Lowering the limit below the current balance is allowed; it only blocks
    new grants until the balance comes down.
    """
    require_non_negative_cents(credit_limit_cents, "credit_limit_cents")

    def _op():
        player = lock_player(player_id)
        player.credit_limit_cents = credit_limit_cents
        db.session.commit()
        return player

    return run_with_retry(_op)


def deactivate_player(player_id: int) -> Player:
    """
    Deactivate a player (soft delete).

    History and outstanding credit stay; inactive players cannot buy in.
    """
    def _op():
        player = lock_player(player_id)
        player.is_active = False
        db.session.commit()
        return player

    return run_with_retry(_op)
