from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol
from uuid import UUID

from .models import LeagueDue, LedgerEntry, PaymentStatus, TeamMembership


class PaymentRepository(Protocol):
    def list_ledger_entries(self, user_id: UUID) -> list[LedgerEntry]: ...

    def list_memberships(self, user_id: UUID) -> list[TeamMembership]: ...

    def list_leagues_for_user(self, user_id: UUID) -> dict[int, LeagueDue]: ...

    def get_league(self, league_id: int) -> Optional[LeagueDue]: ...

    def get_ledger_entry(self, entry_id: int) -> Optional[LedgerEntry]: ...

    def find_ledger_entry(self, user_id: UUID, league_id: int) -> Optional[LedgerEntry]: ...

    def save_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry: ...

    def next_ledger_id(self) -> int: ...


class InMemoryStorage:
    def __init__(self, seed: bool = True):
        self.leagues: dict[int, LeagueDue] = {}
        self.teams: dict[int, dict] = {}
        self.ledger_entries: dict[int, LedgerEntry] = {}
        self._last_ledger_id = 0
        if seed:
            self._seed_data()

    def _seed_data(self):
        captain_id = UUID("550e8400-e29b-41d4-a716-446655440000")
        player_id = UUID("660e8400-e29b-41d4-a716-446655440001")

        self.add_league(LeagueDue(
            league_id=1, name="Tuesday Volleyball", standard_cost=Decimal("100.00"),
            early_bird_cost=Decimal("80.00"), early_bird_deadline=date(2024, 6, 15),
            payment_due_date=date(2024, 7, 1),
        ))
        self.add_league(LeagueDue(league_id=2, name="Sunday Badminton", standard_cost=Decimal("50.00")))
        self.add_league(LeagueDue(league_id=3, name="Drop-in Pickleball", standard_cost=Decimal("0")))

        self.add_team(7, "Net Gains", league_id=1, roster=[captain_id, player_id])
        self.add_team(8, "Shuttle Bugs", league_id=2, roster=[captain_id])
        self.add_team(9, "Dinkers", league_id=3, roster=[player_id])

        self.save_ledger_entry(LedgerEntry(
            id=self.next_ledger_id(), user_id=captain_id, team_id=7, league_id=1,
            amount_due=Decimal("100.00"), amount_paid=Decimal("50.00"),
            status=PaymentStatus.PARTIAL, due_date=date(2024, 7, 1),
            created_at=datetime(2024, 5, 1, 12, 0), updated_at=datetime(2024, 5, 1, 12, 0),
        ))

    def add_league(self, league: LeagueDue) -> LeagueDue:
        self.leagues[league.league_id] = league
        return league

    def add_team(self, team_id: int, name: str, league_id: int, roster: list[UUID], active: bool = True):
        self.teams[team_id] = {
            "id": team_id, "name": name, "league_id": league_id,
            "roster": list(roster), "active": active,
        }

    def list_ledger_entries(self, user_id: UUID) -> list[LedgerEntry]:
        entries = [self._with_names(e) for e in self.ledger_entries.values() if e.user_id == user_id]
        entries.sort(key=lambda e: e.id)
        return entries

    def _with_names(self, entry: LedgerEntry) -> LedgerEntry:
        names = {}
        league = self.leagues.get(entry.league_id)
        if league is not None:
            names["league_name"] = league.name
        team = self.teams.get(entry.team_id)
        if team is not None:
            names["team_name"] = team["name"]
        return entry.model_copy(update=names)

    def list_memberships(self, user_id: UUID) -> list[TeamMembership]:
        return [
            TeamMembership(
                team_id=team["id"], team_name=team["name"],
                league_id=team["league_id"], user_is_on_roster=True,
            )
            for team in self.teams.values()
            if team["active"] and user_id in team["roster"]
        ]

    def list_leagues_for_user(self, user_id: UUID) -> dict[int, LeagueDue]:
        # Read the raw tables so this fetch never depends on the other two
        league_ids = {e.league_id for e in self.ledger_entries.values() if e.user_id == user_id}
        league_ids |= {
            team["league_id"] for team in self.teams.values()
            if team["active"] and user_id in team["roster"]
        }
        return {lid: self.leagues[lid] for lid in league_ids if lid in self.leagues}

    def get_league(self, league_id: int) -> Optional[LeagueDue]:
        return self.leagues.get(league_id)

    def get_ledger_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        return self.ledger_entries.get(entry_id)

    def find_ledger_entry(self, user_id: UUID, league_id: int) -> Optional[LedgerEntry]:
        for entry in self.ledger_entries.values():
            if entry.user_id == user_id and entry.league_id == league_id:
                return entry
        return None

    def save_ledger_entry(self, entry: LedgerEntry) -> LedgerEntry:
        self.ledger_entries[entry.id] = entry
        self._last_ledger_id = max(self._last_ledger_id, entry.id)
        return entry

    def next_ledger_id(self) -> int:
        return self._last_ledger_id + 1
