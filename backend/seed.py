import asyncio
import logging
from datetime import date

from sqlalchemy import func, select

from ladder import db
from ladder.models import Player

logger = logging.getLogger(__name__)

# (id, name, gender, initial rating)
DEMO_ROSTER = [
    ("demo-arjun-mehta", "Arjun Mehta", "M", 1120),
    ("demo-bea-santos", "Bea Santos", "F", 1080),
    ("demo-chen-wei", "Chen Wei", "M", 1060),
    ("demo-divya-rao", "Divya Rao", "F", 1040),
    ("demo-ethan-cole", "Ethan Cole", "M", 1020),
    ("demo-farah-khan", "Farah Khan", "F", 1010),
    ("demo-gabe-lin", "Gabe Lin", "M", 1000),
    ("demo-hana-sato", "Hana Sato", "F", 1000),
    ("demo-ivan-petrov", "Ivan Petrov", "M", 990),
    ("demo-jia-ng", "Jia Ng", "F", 980),
    ("demo-kofi-mensah", "Kofi Mensah", "M", 970),
    ("demo-lena-vogel", "Lena Vogel", "F", 960),
    ("demo-mateo-rojas", "Mateo Rojas", "M", 950),
    ("demo-nadia-haddad", "Nadia Haddad", "F", 940),
    ("demo-omar-farouk", "Omar Farouk", "M", 930),
    ("demo-priya-nair", "Priya Nair", "F", 920),
]


async def main():
    db.get_engine()
    async with db.AsyncSessionLocal() as s:
        taken = {
            name
            for name in (await s.execute(select(func.lower(Player.name)))).scalars()
        }
        added = 0
        for pid, name, gender, rating in DEMO_ROSTER:
            if name.lower() in taken:
                continue
            s.add(
                Player(
                    id=pid,
                    name=name,
                    gender=gender,
                    initial_rating=rating,
                    current_rating=rating,
                    joining_date=date.today(),
                )
            )
            added += 1
        await s.commit()
    logger.info("Seeded %d demo player(s)", added)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
