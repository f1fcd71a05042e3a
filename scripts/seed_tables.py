#!/usr/bin/env python3
"""
Seed script to create the restaurant floor: 100 tables across four zones
"""

import asyncio
import uuid

CAPACITIES = [2, 4, 6, 8]
TABLES_PER_ZONE = 25


def floor_plan():
    """Yield (table_number, capacity, zone) for the whole floor"""
    from tablebook.models.table import ZONE_ORDER

    number = 1
    for zone in ZONE_ORDER:
        for i in range(TABLES_PER_ZONE):
            yield number, CAPACITIES[i % len(CAPACITIES)], zone
            number += 1


async def seed_tables():
    """Seed tables for development"""
    from sqlalchemy import select, func
    from tablebook.database import SessionLocal, engine, Base
    from tablebook.models.table import Table

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if the floor already exists
        result = await db.execute(select(func.count(Table.id)))
        existing = result.scalar()

        if existing:
            print(f"{existing} tables already exist. Skipping...")
            return

        print("Creating tables...")

        created = 0
        for number, capacity, zone in floor_plan():
            db.add(
                Table(
                    id=uuid.uuid4(),
                    table_number=number,
                    capacity=capacity,
                    location=zone,
                )
            )
            created += 1

        await db.commit()
        print(f"Created {created} tables")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_tables())
