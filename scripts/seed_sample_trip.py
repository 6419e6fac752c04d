from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = PROJECT_ROOT / "backend"
for candidate in (PROJECT_ROOT, BACKEND_DIR):
    if str(candidate) not in sys.path:
        sys.path.insert(0, str(candidate))

from routemap.core.db import session_scope
from routemap.models.orm import User
from routemap.models.schemas import AppStateDocument, PlaceDraft, TransportMode
from routemap.repositories import UserRepository
from routemap.services import place_sequence, trip_lists
from routemap.services.app_state_service import AppStateService

# name, (lat, lng), transport, time, description
KERALA_ROUTE = [
    ("Hyderabad (Start)", (17.385, 78.4867), TransportMode.TRAIN, "Overnight",
     "Starting from Hyderabad by train towards Madurai."),
    ("Madurai", (9.9252, 78.1198), TransportMode.TRAIN, None,
     "Start after overnight train from Hyderabad to Madurai."),
    ("Rameshwaram", (9.2876, 79.3129), TransportMode.CAR, "3.5 hrs",
     "Temple town and the iconic Pamban Bridge."),
    ("Kanyakumari", (8.0883, 77.5385), TransportMode.CAR, "4 hrs",
     "Southern tip of India; sunrise/sunset point."),
    ("Padmanabhaswamy Temple", (8.4829, 76.9431), TransportMode.CAR, "2.5 hrs",
     "Historic temple in Kerala capital."),
    ("Varkala Beach", (8.7379, 76.716), TransportMode.CAR, "1.5 hrs",
     "Cliffside beach views and cafes."),
    ("Jatayu Earth Center", (8.8156, 76.8646), TransportMode.CAR, "1 hr",
     "World's largest bird sculpture, zipline & adventure park."),
    ("Alleppey", (9.4981, 76.3388), TransportMode.CAR, "2.5 hrs",
     "Backwaters and houseboat cruise."),
    ("Ernakulam", (9.9816, 76.2999), TransportMode.CAR, "1.5 hrs", None),
    ("Athirapally Waterfalls", (10.2849, 76.5698), TransportMode.CAR, "2 hrs",
     "Niagara of India in Kerala."),
    ("Ernakulam (Return)", (9.9816, 76.2999), TransportMode.CAR, "2 hrs", None),
    ("Munnar", (10.0892, 77.0597), TransportMode.CAR, "4.5 hrs",
     "Tea gardens, viewpoints and cool climate."),
    ("Ernakulam (Return)", (9.9816, 76.2999), TransportMode.CAR, "4.5 hrs", None),
    ("Kochi (Fort Kochi)", (9.9667, 76.2425), TransportMode.CAR, "45 mins",
     "Chinese fishing nets, colonial streets."),
    ("Ernakulam (Return)", (9.9816, 76.2999), TransportMode.CAR, "30 mins", None),
    ("Guruvayur Temple", (10.594, 76.0417), TransportMode.CAR, "2.5 hrs", None),
    ("Coimbatore", (11.0168, 76.9558), TransportMode.CAR, "4 hrs", None),
    ("Bengaluru", (12.9716, 77.5946), TransportMode.TRAIN, "Overnight", None),
    ("Hyderabad (Return)", (17.385, 78.4867), TransportMode.TRAIN, "Overnight",
     None),
]


def build_kerala_document(document: AppStateDocument) -> AppStateDocument:
    """Append the sample trip; the Ernakulam and Hyderabad returns become revisits."""

    document, trip = trip_lists.create_trip(document, "Kerala")

    def _append_all(places):
        for name, coords, transport, duration, description in KERALA_ROUTE:
            draft = PlaceDraft(
                name=name,
                coords=coords,
                transport=transport,
                time=duration,
                description=description,
            )
            places, _ = place_sequence.append_place(places, draft)
        return places

    return trip_lists.with_trip_places(document, trip.id, _append_all)


def _ensure_user(email: str) -> int:
    with session_scope() as session:
        repo = UserRepository(session)
        user = repo.get_by_email(email)
        if user is None:
            user = repo.add(User(email=email.lower(), name="Sample Traveller"))
        return user.id


def seed(email: str) -> int:
    user_id = _ensure_user(email)
    service = AppStateService()
    current = service.get_state(user_id)
    if any(trip.name == "Kerala" for trip in current.trip_lists):
        return user_id
    service.save_state(user_id, build_kerala_document(current))
    return user_id


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Seed the sample Kerala trip into a user's application state.",
    )
    parser.add_argument(
        "--email", default=os.getenv("SEED_USER_EMAIL", "sample@routemap.local")
    )
    args = parser.parse_args()
    user_id = seed(args.email)
    print(f"Sample Kerala trip ready for user {user_id}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
