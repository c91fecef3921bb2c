"""
Scoreboard normalizer

Maps the raw ESPN golf scoreboard JSON onto the compact leaderboard shape
served to the browser client:
- Selects the active event from the feed
- Classifies tournament status
- Formats scores relative to par, positions, and holes completed

Normalization never raises. Missing or mistyped structure degrades to a
``no_tournament`` snapshot.
"""

import logging
import math
import re
from typing import Dict, List, Any, Optional
from datetime import datetime, timezone
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


STATUS_OK = "ok"
STATUS_NO_TOURNAMENT = "no_tournament"
STATUS_ERROR = "error"

ACTIVE_STATUSES = ('STATUS_IN_PROGRESS', 'STATUS_PLAY_COMPLETE')
VALID_STATUSES = ('STATUS_IN_PROGRESS', 'STATUS_SCHEDULED', 'STATUS_FINAL', 'STATUS_PLAY_COMPLETE')
FINISHED_STATUSES = ('STATUS_FINAL', 'STATUS_PLAY_COMPLETE')

DEFAULT_TOURNAMENT_NAME = "PGA Tour Event"

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


@dataclass
class PlayerEntry:
    """One row of the leaderboard"""
    name: str
    score: str
    thru: str
    position: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'score': self.score,
            'thru': self.thru,
            'position': self.position
        }


@dataclass
class LeaderboardSnapshot:
    """Normalized leaderboard as cached and served"""
    status: str
    tournament: Optional[str] = None
    round: Optional[str] = None
    round_status: Optional[str] = None
    players: List[PlayerEntry] = field(default_factory=list)
    fetched_at: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def no_tournament(cls) -> 'LeaderboardSnapshot':
        return cls(status=STATUS_NO_TOURNAMENT)

    @classmethod
    def error(cls, message: str) -> 'LeaderboardSnapshot':
        return cls(status=STATUS_ERROR, message=message)

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    def summary(self) -> str:
        """One-line description used in refresh logs"""
        if self.is_ok:
            return f"{self.tournament} {self.round} ({len(self.players)} players)"
        return self.status

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape expected by the browser client"""
        if self.status == STATUS_ERROR:
            return {'status': self.status, 'message': self.message or ''}
        if not self.is_ok:
            return {'status': self.status}
        return {
            'status': self.status,
            'tournament': self.tournament,
            'round': self.round,
            'roundStatus': self.round_status,
            'players': [p.to_dict() for p in self.players],
            'fetchedAt': self.fetched_at
        }


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _primary_competition(event: Any) -> Optional[Dict[str, Any]]:
    """First competition of an event, if it is usable"""
    competitions = _as_list(_as_dict(event).get('competitions'))
    if competitions and isinstance(competitions[0], dict):
        return competitions[0]
    return None


def _status_name(competition: Optional[Dict[str, Any]]) -> str:
    status_type = _as_dict(_as_dict(_as_dict(competition).get('status')).get('type'))
    name = status_type.get('name')
    return name if isinstance(name, str) else ''


def _finite_int(value: float) -> Optional[int]:
    """Truncate a JSON float, rejecting NaN and Infinity"""
    if not math.isfinite(value):
        return None
    return int(value)


def _display_number(value: Any) -> Optional[str]:
    """Render a feed number the way the client expects: 2.0 as "2", NaN as absent"""
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
    return str(value)


def select_active_event(events: List[Any]) -> Optional[Any]:
    """Pick the first in-progress or play-complete event, else the first event"""
    for event in events:
        if _status_name(_primary_competition(event)) in ACTIVE_STATUSES:
            return event
    return events[0] if events else None


def parse_score(raw_score: Any) -> Optional[int]:
    """Parse a score value the way the feed encodes it ("-3", "+2", 5)"""
    if isinstance(raw_score, bool):
        return None
    if isinstance(raw_score, int):
        return raw_score
    if isinstance(raw_score, float):
        return _finite_int(raw_score)
    if isinstance(raw_score, str):
        match = _LEADING_INT.match(raw_score)
        if match:
            return int(match.group(1))
    return None


def format_score(raw_score: Any) -> str:
    """Format a score relative to par: E, -3, +5"""
    value = parse_score(raw_score)
    if not value:
        return 'E'
    if value < 0:
        return str(value)
    return f"+{value}"


def format_position(competitor: Dict[str, Any], index: int) -> str:
    """MC for cut players, WD for withdrawals, else the feed's sort order"""
    status = competitor.get('status')
    if isinstance(status, str):
        status = status.lower()
        if status == 'cut':
            return 'MC'
        if status == 'wd':
            return 'WD'

    sort_order = competitor.get('sortOrder')
    if sort_order and not isinstance(sort_order, (dict, list, bool)):
        position = _display_number(sort_order)
        if position is not None:
            return position
    return str(index + 1)


def format_thru(competitor: Dict[str, Any], is_finished: bool) -> str:
    """Holes completed in the current round, F when done, -- before play"""
    if is_finished:
        return 'F'

    rounds = _as_list(competitor.get('linescores'))
    if not rounds:
        return '--'

    # Line scores are per round; the last one is the current round
    holes = _as_dict(rounds[-1]).get('linescores')
    if isinstance(holes, list):
        return str(len(holes))
    return 'F'


def _display_name(competitor: Dict[str, Any]) -> str:
    name = _as_dict(competitor.get('athlete')).get('displayName')
    return name if isinstance(name, str) else ''


def parse_player(competitor: Any, index: int, is_finished: bool) -> Optional[PlayerEntry]:
    """Map one competitor to a player entry, or None if it has no name"""
    competitor = _as_dict(competitor)
    name = _display_name(competitor)
    if not name:
        return None

    return PlayerEntry(
        name=name,
        score=format_score(competitor.get('score')),
        thru=format_thru(competitor, is_finished),
        position=format_position(competitor, index)
    )


def _event_name(event: Any) -> str:
    name = _as_dict(event).get('name')
    return name if isinstance(name, str) and name else DEFAULT_TOURNAMENT_NAME


def _utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def normalize(raw: Any, now: Optional[datetime] = None) -> LeaderboardSnapshot:
    """Normalize a raw scoreboard payload into a leaderboard snapshot"""
    events = _as_list(_as_dict(raw).get('events'))

    event = select_active_event(events)
    if event is None:
        return LeaderboardSnapshot.no_tournament()

    competition = _primary_competition(event)
    if competition is None:
        return LeaderboardSnapshot.no_tournament()

    status_name = _status_name(competition)
    if status_name not in VALID_STATUSES:
        logger.debug(f"Ignoring event with status {status_name!r}")
        return LeaderboardSnapshot.no_tournament()

    is_finished = status_name in FINISHED_STATUSES

    status = _as_dict(competition.get('status'))
    round_num = status.get('period')
    if round_num and not isinstance(round_num, (bool, dict, list)):
        round_num = _display_number(round_num) or 1
    else:
        round_num = 1
    round_status = _as_dict(status.get('type')).get('shortDetail') or ''

    players = []
    for index, competitor in enumerate(_as_list(competition.get('competitors'))):
        player = parse_player(competitor, index, is_finished)
        if player is not None:
            players.append(player)

    if not players:
        return LeaderboardSnapshot.no_tournament()

    return LeaderboardSnapshot(
        status=STATUS_OK,
        tournament=_event_name(event),
        round=f"Round {round_num}",
        round_status=str(round_status),
        players=players,
        fetched_at=_utc_timestamp(now)
    )
