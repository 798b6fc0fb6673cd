"""
Single-elimination bracket generation and result reporting

Seeding follows the standard layout (1 v N, 2 v N-1, ...) arranged so the
top seeds can only meet in the late rounds. When the field is not a power
of two the top seeds get byes, which advance automatically.
"""

import logging
import random
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from arena.core.errors import NotFound, ValidationError
from arena.models import Bracket, BracketMatch, BracketParticipant, Event, Registration
from arena.models.enums import (
    BracketStatus,
    BracketType,
    CheckInStatus,
    MatchStatus,
    RegistrationStatus,
)
from arena.schemas.bracket import BracketCreate, BracketUpdate, MatchUpdate

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS = {
    BracketStatus.PENDING: {BracketStatus.IN_PROGRESS},
    BracketStatus.IN_PROGRESS: {BracketStatus.COMPLETED},
    BracketStatus.COMPLETED: set(),
}

FINISHED_MATCH_STATUSES = (MatchStatus.COMPLETED, MatchStatus.BYE)

# a third place match needs two semifinal losers
MIN_PARTICIPANTS_FOR_THIRD_PLACE = 4


def round_count(participant_count: int) -> int:
    """Rounds needed to reduce the field to one winner"""
    return (participant_count - 1).bit_length()


def bracket_size(participant_count: int) -> int:
    return 1 << round_count(participant_count)


def seed_order(size: int) -> List[int]:
    """Seeds in bracket slot order, e.g. 8 -> [1, 8, 4, 5, 2, 7, 3, 6]"""
    order = [1]
    while len(order) < size:
        total = len(order) * 2 + 1
        order = [seed for top in order for seed in (top, total - top)]
    return order


def seed_pairings(participant_count: int) -> List[Tuple[int, Optional[int]]]:
    """First round pairs; a seed beyond the field is a bye (None)"""
    order = seed_order(bracket_size(participant_count))
    pairs = []
    for index in range(0, len(order), 2):
        top, bottom = order[index], order[index + 1]
        pairs.append((top, bottom if bottom <= participant_count else None))
    return pairs


def match_templates(participant_count: int, third_place: bool = False) -> List[Dict]:
    """
    Describe every match of a single-elimination bracket.

    Each template has round, match_number, position and, for the first
    round, the seeds it starts with. `next` is the (round, match_number)
    the winner moves to and `slot` the side they take there.
    """
    rounds = round_count(participant_count)
    templates = []
    position = 0

    for number, (top, bottom) in enumerate(seed_pairings(participant_count), start=1):
        templates.append({"round": 1, "match_number": number, "position": position, "seeds": (top, bottom)})
        position += 1

    for round_no in range(2, rounds + 1):
        for number in range(1, 2 ** (rounds - round_no) + 1):
            templates.append({"round": round_no, "match_number": number, "position": position, "seeds": (None, None)})
            position += 1

    for template in templates:
        if template["round"] < rounds:
            template["next"] = (template["round"] + 1, (template["match_number"] + 1) // 2)
            template["slot"] = 1 if template["match_number"] % 2 == 1 else 2
        else:
            template["next"] = None
            template["slot"] = None
        template["is_third_place"] = False

    if third_place and participant_count >= MIN_PARTICIPANTS_FOR_THIRD_PLACE:
        templates.append({
            "round": rounds,
            "match_number": 2,
            "position": position,
            "seeds": (None, None),
            "next": None,
            "slot": None,
            "is_third_place": True,
        })
    return templates


class BracketService:
    """Service for bracket operations"""

    @staticmethod
    def get(db: Session, bracket_id: int) -> Bracket:
        bracket = db.query(Bracket).filter(Bracket.id == bracket_id).first()
        if not bracket:
            raise NotFound("Bracket")
        return bracket

    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[Bracket]:
        return db.query(Bracket).filter(
            Bracket.event_id == event_id
        ).order_by(Bracket.created_at.desc(), Bracket.id.desc()).all()

    @staticmethod
    def eligible_registrations(db: Session, event: Event) -> List[Registration]:
        """Confirmed and checked-in registrations in registration order"""
        return db.query(Registration).filter(
            Registration.event_id == event.id,
            Registration.status == RegistrationStatus.CONFIRMED,
            Registration.check_in_status == CheckInStatus.CHECKED_IN
        ).order_by(Registration.registered_at.asc(), Registration.id.asc()).all()

    @staticmethod
    def _seeded(registrations: List[Registration], data: BracketCreate) -> List[Registration]:
        if data.seeding_method == "RANDOM":
            shuffled = list(registrations)
            random.shuffle(shuffled)
            return shuffled
        if data.seeding_method == "MANUAL":
            by_id = {registration.id: registration for registration in registrations}
            if sorted(data.custom_seeding) != sorted(by_id):
                raise ValidationError("custom_seeding must list every eligible registration exactly once")
            return [by_id[registration_id] for registration_id in data.custom_seeding]
        return registrations

    @staticmethod
    def _participants(event: Event, registrations: List[Registration]) -> List[BracketParticipant]:
        """One entrant per player, or per team when the event is played in teams"""
        participants = []
        seen_teams = set()
        for registration in registrations:
            if event.team_size > 1 and registration.team is not None:
                if registration.team_id in seen_teams:
                    continue
                seen_teams.add(registration.team_id)
                entrant = BracketParticipant(
                    name=registration.team.name, is_team=True, team_id=registration.team_id
                )
            else:
                entrant = BracketParticipant(
                    name=registration.user.name, is_team=False, user_id=registration.user_id
                )
            entrant.seed = len(participants) + 1
            participants.append(entrant)
        return participants

    @staticmethod
    def _place(match: BracketMatch, slot: int, participant_id: int) -> None:
        if slot == 1:
            match.participant1_id = participant_id
        else:
            match.participant2_id = participant_id
        if match.participant1_id and match.participant2_id:
            match.status = MatchStatus.READY

    @staticmethod
    def create(db: Session, event: Event, data: BracketCreate) -> Bracket:
        if data.type != BracketType.SINGLE_ELIMINATION:
            raise ValidationError(f"Bracket type {data.type.value} is not supported yet")

        registrations = BracketService.eligible_registrations(db, event)
        participants = BracketService._participants(event, BracketService._seeded(registrations, data))
        if len(participants) < 2:
            raise ValidationError("At least 2 confirmed, checked-in participants are required to create a bracket")

        count = len(participants)
        third_place = data.third_place_match and count >= MIN_PARTICIPANTS_FOR_THIRD_PLACE
        bracket = Bracket(
            event_id=event.id,
            name=(data.name or "").strip() or f"{event.name} - Single Elimination Bracket",
            type=BracketType.SINGLE_ELIMINATION,
            status=BracketStatus.PENDING,
            round_count=round_count(count),
            current_round=1,
            third_place_match=third_place,
        )
        bracket.participants = participants

        try:
            db.add(bracket)
            db.flush()

            by_seed = {participant.seed: participant for participant in participants}
            templates = match_templates(count, third_place)
            matches = {}
            for template in templates:
                top, bottom = template["seeds"]
                match = BracketMatch(
                    bracket_id=bracket.id,
                    round=template["round"],
                    match_number=template["match_number"],
                    position=template["position"],
                    is_third_place=template["is_third_place"],
                    participant1_id=by_seed[top].id if top else None,
                    participant2_id=by_seed[bottom].id if bottom else None,
                    status=MatchStatus.PENDING,
                )
                if top and bottom:
                    match.status = MatchStatus.READY
                elif top:
                    match.status = MatchStatus.BYE
                    match.winner_id = match.participant1_id
                    match.completed_at = datetime.utcnow()
                db.add(match)
                matches[(template["round"], template["match_number"], template["is_third_place"])] = match
            db.flush()

            third_place_match = matches.get((bracket.round_count, 2, True))
            for template in templates:
                match = matches[(template["round"], template["match_number"], template["is_third_place"])]
                if template["next"]:
                    next_match = matches[(template["next"][0], template["next"][1], False)]
                    match.next_match_id = next_match.id
                    if match.status == MatchStatus.BYE:
                        BracketService._place(next_match, template["slot"], match.winner_id)
                if third_place_match is not None and template["round"] == bracket.round_count - 1:
                    match.loser_next_match_id = third_place_match.id
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(bracket)
        logger.info(f"Bracket {bracket.id} created for event {event.id} with {count} participants")
        return bracket

    @staticmethod
    def update(db: Session, bracket: Bracket, data: BracketUpdate) -> Bracket:
        """Status moves only along PENDING -> IN_PROGRESS -> COMPLETED"""
        if data.status is not None and data.status != bracket.status:
            if data.status not in STATUS_TRANSITIONS[bracket.status]:
                raise ValidationError(
                    f"Cannot move bracket from {bracket.status.value} to {data.status.value}"
                )
            if data.status == BracketStatus.IN_PROGRESS:
                bracket.started_at = datetime.utcnow()
            if data.status == BracketStatus.COMPLETED:
                bracket.completed_at = datetime.utcnow()
            bracket.status = data.status

        if data.current_round is not None:
            if not 1 <= data.current_round <= bracket.round_count:
                raise ValidationError(f"current_round must be between 1 and {bracket.round_count}")
            bracket.current_round = data.current_round

        db.commit()
        db.refresh(bracket)
        return bracket

    @staticmethod
    def report_match(db: Session, bracket: Bracket, match_id: int, data: MatchUpdate) -> BracketMatch:
        """Record scores, start a match or settle it with a winner"""
        match = db.query(BracketMatch).filter(
            BracketMatch.id == match_id,
            BracketMatch.bracket_id == bracket.id
        ).first()
        if not match:
            raise NotFound("Match")
        if bracket.status == BracketStatus.COMPLETED:
            raise ValidationError("Bracket is already completed")
        if match.status in FINISHED_MATCH_STATUSES:
            raise ValidationError("Match result has already been decided")

        now = datetime.utcnow()
        if data.score1 is not None:
            match.score1 = data.score1
        if data.score2 is not None:
            match.score2 = data.score2

        if data.status is not None and data.winner_id is None:
            if data.status != MatchStatus.IN_PROGRESS:
                raise ValidationError("Only IN_PROGRESS can be set directly; report a winner to complete a match")
            if match.status != MatchStatus.READY:
                raise ValidationError("Match is waiting for its participants")
            match.status = MatchStatus.IN_PROGRESS
            match.started_at = now

        if data.winner_id is not None:
            if not (match.participant1_id and match.participant2_id):
                raise ValidationError("Match is waiting for its participants")
            if data.winner_id not in (match.participant1_id, match.participant2_id):
                raise ValidationError("Winner must be one of the match participants")
            loser_id = match.participant2_id if data.winner_id == match.participant1_id else match.participant1_id

            match.winner_id = data.winner_id
            match.status = MatchStatus.COMPLETED
            match.completed_at = now
            db.query(BracketParticipant).filter(BracketParticipant.id == data.winner_id).update(
                {BracketParticipant.wins: BracketParticipant.wins + 1}, synchronize_session=False
            )
            db.query(BracketParticipant).filter(BracketParticipant.id == loser_id).update(
                {BracketParticipant.losses: BracketParticipant.losses + 1}, synchronize_session=False
            )

            slot = 1 if match.match_number % 2 == 1 else 2
            if match.next_match_id:
                next_match = db.query(BracketMatch).filter(BracketMatch.id == match.next_match_id).first()
                BracketService._place(next_match, slot, data.winner_id)
            if match.loser_next_match_id:
                third_place = db.query(BracketMatch).filter(BracketMatch.id == match.loser_next_match_id).first()
                BracketService._place(third_place, slot, loser_id)

        if bracket.status == BracketStatus.PENDING and match.status in (MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED):
            bracket.status = BracketStatus.IN_PROGRESS
            bracket.started_at = now

        db.flush()
        open_rounds = [
            m.round for m in db.query(BracketMatch).filter(BracketMatch.bracket_id == bracket.id)
            if m.status not in FINISHED_MATCH_STATUSES
        ]
        if open_rounds:
            bracket.current_round = min(open_rounds)
        else:
            bracket.current_round = bracket.round_count
            bracket.status = BracketStatus.COMPLETED
            bracket.completed_at = now

        db.commit()
        db.refresh(match)
        return match

    @staticmethod
    def delete(db: Session, bracket_id: int) -> None:
        """Delete a bracket; participants and matches go with it through ON DELETE CASCADE"""
        deleted = db.query(Bracket).filter(Bracket.id == bracket_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFound("Bracket")
        db.commit()
