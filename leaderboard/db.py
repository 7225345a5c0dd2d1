"""
Store abstraction for leaderboard data, with an in-memory implementation and
a SQLAlchemy-backed one.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Integer, String, create_engine, func, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class Store(Protocol):
    """Interface the HTTP layer needs from the data store."""

    def get_account(self, account_id: int) -> Optional["Account"]:
        ...

    def get_account_by_username(self, username: str) -> Optional["Account"]:
        ...

    def create_account(self, username: str, password: str) -> "Account":
        ...

    def username_exists(self, username: str) -> bool:
        ...

    def get_top_scores(self, limit: Optional[int]) -> list["ScoreEntry"]:
        ...

    def add_score(
        self, wallet_address: str, score: int, created_at: str
    ) -> "ScoreEntry":
        ...

    def get_all_notes(self) -> list["Note"]:
        ...

    def close(self) -> None:
        ...


@dataclass(frozen=True)
class Account:
    id: int
    username: str
    password: str

    def as_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "password": self.password}


@dataclass(frozen=True)
class ScoreEntry:
    id: int
    wallet_address: str
    score: int
    created_at: str

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "score": self.score,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Note:
    id: int
    date: str
    content: str
    is_highlighted: int = 0

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "content": self.content,
            "isHighlighted": self.is_highlighted,
        }


# (date, content, is_highlighted); seeded in this order with ids 1..4.
DEFAULT_NOTES: tuple[tuple[str, str, int], ...] = (
    (
        "2023-07-15",
        "The blockchain landscape is evolving faster than anticipated. Our "
        "positioning with the MicroChain architecture gives us a unique "
        "advantage in the market. The scalability solution we're implementing "
        "should address the bottlenecks that have plagued most layer-2 "
        "implementations.",
        0,
    ),
    (
        "2023-07-18",
        "Token economics model revision complete. The deflationary mechanism "
        "coupled with staking rewards creates the perfect balance for "
        "long-term sustainability. The board has approved the final "
        "parameters for launch.",
        0,
    ),
    (
        "2023-07-22",
        "Security audit is in progress. Initial feedback is positive. The "
        "novel consensus mechanism we've implemented has received particular "
        "praise. Looking forward to the public release and seeing the "
        "community's reaction.",
        0,
    ),
    (
        "2023-07-23",
        "UPCOMING: Major partnership announcement scheduled post-launch",
        1,
    ),
)


def _check_limit(limit: Optional[int]) -> None:
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


class InMemoryStore:
    """Process-local store used for development and tests."""

    def __init__(self):
        self.accounts: Dict[int, Account] = {}
        self.scores: Dict[int, ScoreEntry] = {}
        self.notes: Dict[int, Note] = {}
        self._account_ids = itertools.count(1)
        self._score_ids = itertools.count(1)
        self._note_ids = itertools.count(1)
        self._seed_notes()

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.accounts.get(account_id)

    def get_account_by_username(self, username: str) -> Optional[Account]:
        for account in self.accounts.values():
            if account.username == username:
                return account
        return None

    def create_account(self, username: str, password: str) -> Account:
        account = Account(
            id=next(self._account_ids), username=username, password=password
        )
        self.accounts[account.id] = account
        return account

    def username_exists(self, username: str) -> bool:
        return self.get_account_by_username(username) is not None

    def get_top_scores(self, limit: Optional[int]) -> list[ScoreEntry]:
        """
        Highest scores first. sorted() is stable, so equal scores keep
        their insertion order. ``limit=None`` returns every score.
        """
        _check_limit(limit)
        ranked = sorted(self.scores.values(), key=lambda s: s.score, reverse=True)
        return ranked[:limit]

    def add_score(
        self, wallet_address: str, score: int, created_at: str
    ) -> ScoreEntry:
        entry = ScoreEntry(
            id=next(self._score_ids),
            wallet_address=wallet_address,
            score=score,
            created_at=created_at,
        )
        self.scores[entry.id] = entry
        return entry

    def get_all_notes(self) -> list[Note]:
        return list(self.notes.values())

    def reset(self) -> None:
        """Drop all data and re-seed the default notes (useful in tests)."""
        self.accounts.clear()
        self.scores.clear()
        self.notes.clear()
        self._account_ids = itertools.count(1)
        self._score_ids = itertools.count(1)
        self._note_ids = itertools.count(1)
        self._seed_notes()

    def close(self) -> None:
        pass

    def _add_note(self, date: str, content: str, is_highlighted: int = 0) -> Note:
        note = Note(
            id=next(self._note_ids),
            date=date,
            content=content,
            is_highlighted=is_highlighted,
        )
        self.notes[note.id] = note
        return note

    def _seed_notes(self) -> None:
        for date, content, is_highlighted in DEFAULT_NOTES:
            self._add_note(date, content, is_highlighted)


class SqlStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Ids come from the database's autoincrement columns.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)
        self._seed_notes()

    def get_account(self, account_id: int) -> Optional[Account]:
        with self.Session() as session:
            row = session.get(AccountRow, account_id)
            return _to_account(row) if row else None

    def get_account_by_username(self, username: str) -> Optional[Account]:
        with self.Session() as session:
            stmt = (
                select(AccountRow)
                .where(AccountRow.username == username)
                .order_by(AccountRow.id.asc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            return _to_account(row) if row else None

    def create_account(self, username: str, password: str) -> Account:
        with self.Session() as session:
            row = AccountRow(username=username, password=password)
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_account(row)

    def username_exists(self, username: str) -> bool:
        return self.get_account_by_username(username) is not None

    def get_top_scores(self, limit: Optional[int]) -> list[ScoreEntry]:
        _check_limit(limit)
        with self.Session() as session:
            # id ascending reproduces insertion order among equal scores.
            stmt = (
                select(ScoreRow)
                .order_by(ScoreRow.score.desc(), ScoreRow.id.asc())
                .limit(limit)
            )
            return [_to_score(row) for row in session.execute(stmt).scalars()]

    def add_score(
        self, wallet_address: str, score: int, created_at: str
    ) -> ScoreEntry:
        with self.Session() as session:
            row = ScoreRow(
                wallet_address=wallet_address, score=score, created_at=created_at
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_score(row)

    def get_all_notes(self) -> list[Note]:
        with self.Session() as session:
            rows = session.execute(select(NoteRow).order_by(NoteRow.id.asc()))
            return [_to_note(row) for row in rows.scalars()]

    def close(self) -> None:
        self.engine.dispose()

    def _seed_notes(self) -> None:
        with self.Session() as session:
            existing = session.execute(select(func.count(NoteRow.id))).scalar_one()
            if existing:
                return
            for date, content, is_highlighted in DEFAULT_NOTES:
                session.add(
                    NoteRow(date=date, content=content, is_highlighted=is_highlighted)
                )
            session.commit()


Base = declarative_base()


class AccountRow(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Indexed but not unique: duplicate usernames are accepted.
    username = Column(String, nullable=False, index=True)
    password = Column(String, nullable=False)


class ScoreRow(Base):
    __tablename__ = "game_scores"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_address = Column(String, nullable=False)
    score = Column(Integer, nullable=False, index=True)
    created_at = Column(String, nullable=False)


class NoteRow(Base):
    __tablename__ = "notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String, nullable=False)
    content = Column(String, nullable=False)
    is_highlighted = Column(Integer, nullable=False, default=0)


def _to_account(row: AccountRow) -> Account:
    return Account(id=row.id, username=row.username, password=row.password)


def _to_score(row: ScoreRow) -> ScoreEntry:
    return ScoreEntry(
        id=row.id,
        wallet_address=row.wallet_address,
        score=row.score,
        created_at=row.created_at,
    )


def _to_note(row: NoteRow) -> Note:
    return Note(
        id=row.id,
        date=row.date,
        content=row.content,
        is_highlighted=row.is_highlighted if row.is_highlighted is not None else 0,
    )
