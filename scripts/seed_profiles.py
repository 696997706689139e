#!/usr/bin/env python3
"""
Database seeding script for TennisMate.
Creates a handful of player profiles around Frankfurt plus one reciprocal
like, and prints an access token per profile for trying the API.
"""

import asyncio
import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from sqlalchemy import select
from tennismate.core.database import AsyncSessionLocal, init_models
from tennismate.core.security import create_access_token
from tennismate.models.profile import Profile, SkillLevel
from tennismate.models.swipe import Swipe, SwipeAction
import uuid


SAMPLE_PROFILES = [
    {
        "name": "Anna",
        "email": "anna@example.com",
        "skill_level": SkillLevel.INTERMEDIATE.value,
        "location": "Frankfurt Sachsenhausen",
        "latitude": 50.1003,
        "longitude": 8.6821,
        "bio": "Weekend baseliner looking for a regular hitting partner.",
        "availability": [{"day": "Sat", "start": "09:00", "end": "12:00"}],
        "age": 29,
    },
    {
        "name": "Ben",
        "email": "ben@example.com",
        "skill_level": SkillLevel.ADVANCED.value,
        "location": "Frankfurt Bockenheim",
        "latitude": 50.1224,
        "longitude": 8.6446,
        "bio": "Former club player, serve and volley.",
        "availability": [{"day": "Tue", "start": "18:00", "end": "20:00"}],
        "age": 34,
    },
    {
        "name": "Clara",
        "email": "clara@example.com",
        "skill_level": SkillLevel.BEGINNER.value,
        "location": "Offenbach",
        "latitude": 50.0956,
        "longitude": 8.7761,
        "bio": "Just started, happy to learn.",
        "availability": [],
        "age": 24,
    },
    {
        "name": "David",
        "email": "david@example.com",
        "skill_level": SkillLevel.PRO.value,
        "location": "Berlin Mitte",
        "latitude": 52.5200,
        "longitude": 13.4050,
        "bio": "In Frankfurt twice a month for work.",
        "availability": [{"day": "Thu", "start": "07:00", "end": "08:30"}],
        "age": 31,
    },
]


async def seed_profiles() -> list[Profile]:
    """Insert the sample profiles that do not exist yet."""
    async with AsyncSessionLocal() as session:
        try:
            profiles = []
            for data in SAMPLE_PROFILES:
                result = await session.execute(select(Profile).where(Profile.email == data["email"]))
                profile = result.scalar_one_or_none()
                if profile is None:
                    profile = Profile(id=uuid.uuid4(), **data)
                    session.add(profile)
                    print(f"Created profile: {data['name']}")
                else:
                    print(f"Profile {data['email']} already exists, skipping")
                profiles.append(profile)

            # Ben already liked Anna, so Anna liking Ben back creates a match
            anna, ben = profiles[0], profiles[1]
            result = await session.execute(
                select(Swipe).where(Swipe.user_id == ben.id, Swipe.target_user_id == anna.id)
            )
            if result.scalar_one_or_none() is None:
                session.add(Swipe(user_id=ben.id, target_user_id=anna.id, action=SwipeAction.LIKE.value))

            await session.commit()
            return profiles

        except Exception as e:
            await session.rollback()
            print(f"Error seeding profiles: {e}")
            raise


async def main():
    print("Starting database seeding...")

    try:
        await init_models()
        profiles = await seed_profiles()

        print("\nAccess tokens:")
        for profile in profiles:
            token = create_access_token(data={"sub": str(profile.id)})
            print(f"   {profile.name}: {token}")

    except Exception as e:
        print(f"Seeding failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
