import argparse
import random
import sys
import uuid
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from orbit.config import INTEREST_CATALOG, MAX_AGE, MAX_INTERESTS, MIN_AGE, QUIZ_LENGTH, QUIZ_OPTION_COUNT
from orbit.database import SessionLocal
from orbit.deps import Services
from orbit.main import create_schema


def dummy_onboarding(rng: random.Random) -> dict:
    return {
        "user_id": str(uuid.uuid4()),
        "age": rng.randint(MIN_AGE, MAX_AGE),
        "interests": rng.sample(INTEREST_CATALOG, k=rng.randint(1, MAX_INTERESTS)),
        "quiz_answers": [rng.randrange(QUIZ_OPTION_COUNT) for _ in range(QUIZ_LENGTH)],
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed dummy Orbit users and place them into rooms")
    parser.add_argument("--n-users", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    create_schema()
    rng = random.Random(args.seed)
    services = Services(SessionLocal, rng=rng)
    rooms: dict[str, int] = {}
    for _ in range(args.n_users):
        data = dummy_onboarding(rng)
        result = services.onboarding.complete(**data)
        rooms[result["room_id"]] = rooms.get(result["room_id"], 0) + 1

    print(f"seeded users={args.n_users} rooms={len(rooms)} largest_room={max(rooms.values(), default=0)}")


if __name__ == "__main__":
    main()
