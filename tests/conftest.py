from __future__ import annotations

import itertools
from dataclasses import replace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.auth.actor import Actor
from app.core.config import get_config
from app.core.enums import ActorType, CommitmentStatus, DealStatus, UserRole
from app.models import Base, Commitment, Deal, User

DEAL_SIZES = [
    {
        "size": "750ml",
        "name": "Cabernet 750ml",
        "originalCost": 30.0,
        "discountPrice": 20.0,
        "bottlesPerCase": 12,
        "discountTiers": [
            {"tierQuantity": 50, "tierDiscount": 18.0},
            {"tierQuantity": 100, "tierDiscount": 16.0},
        ],
    },
    {
        "size": "1.5L",
        "name": "Cabernet Magnum",
        "originalCost": 50.0,
        "discountPrice": 35.0,
        "bottlesPerCase": 6,
        "discountTiers": [],
    },
]


@pytest.fixture
def session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def email_config():
    return replace(get_config(), EMAIL_ENABLED=True, EMAIL_SANDBOX_MODE=True, REPORTING_TIMEZONE="America/Denver")


class Seeder:
    """Inserts users, deals and commitments with sensible defaults."""

    def __init__(self, session) -> None:
        self.session = session
        self._counter = itertools.count(1)

    def user(self, role: UserRole = UserRole.MEMBER, name: str | None = None, **fields) -> User:
        number = next(self._counter)
        user = User(
            name=name or f"{role.value.title()} {number}",
            email=fields.pop("email", f"{role.value}{number}@example.com"),
            role=role.value,
            **fields,
        )
        self.session.add(user)
        self.session.commit()
        return user

    def distributor(self, **fields) -> User:
        fields.setdefault("business_name", "Valley Wine Distributors")
        return self.user(UserRole.DISTRIBUTOR, **fields)

    def member(self, **fields) -> User:
        return self.user(UserRole.MEMBER, **fields)

    def deal(self, distributor: User, **fields) -> Deal:
        deal = Deal(
            name=fields.pop("name", "Cabernet Case Deal"),
            distributor_id=distributor.id,
            sizes=fields.pop("sizes", DEAL_SIZES),
            status=fields.pop("status", DealStatus.ACTIVE.value),
            **fields,
        )
        self.session.add(deal)
        self.session.commit()
        return deal

    def commitment(
        self,
        deal: Deal,
        member: User,
        status: CommitmentStatus = CommitmentStatus.PENDING,
        lines: list[tuple[str, int, float]] | None = None,
        **fields,
    ) -> Commitment:
        documents = [
            {
                "size": size,
                "name": size,
                "quantity": quantity,
                "pricePerUnit": price,
                "totalPrice": round(quantity * price, 2),
            }
            for size, quantity, price in (lines if lines is not None else [("750ml", 10, 20.0)])
        ]
        commitment = Commitment(
            deal_id=deal.id,
            user_id=member.id,
            size_commitments=documents,
            total_price=fields.pop("total_price", round(sum(d["totalPrice"] for d in documents), 2)),
            status=CommitmentStatus(status).value,
            **fields,
        )
        self.session.add(commitment)
        self.session.commit()
        return commitment


@pytest.fixture
def seed(session):
    return Seeder(session)


def actor_for(user: User, actor_type: ActorType = ActorType.DISTRIBUTOR) -> Actor:
    return Actor(type=actor_type, id=user.id)


@pytest.fixture
def as_actor():
    return actor_for
