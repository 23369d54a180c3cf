# scripts/setup/seed_demo.py
"""
Seed a demo location with a row of slots per vehicle class.
Skips anything that already exists, so it is safe to re-run.
Usage: python scripts/setup/seed_demo.py [--name "Main Campus"] [--zone Central]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from smartpark.database import build_engine, create_tables, make_session_factory
from smartpark.errors import AlreadyExists
from smartpark.services import catalog_service, catalog_store

# class → (prefix, count)
DEMO_SLOTS = {
    "two_wheeler": ("TW", 10),
    "four_wheeler": ("FW", 8),
    "bus": ("BS", 2),
}


def main(name, zone):
    engine = build_engine()
    create_tables(engine)
    db = make_session_factory(engine)()

    try:
        location = catalog_store.find_location_by_name(db, name)
        if location:
            print(f"📍 Location '{name}' already exists (id={location.id})")
        else:
            location = catalog_service.create_location(db, name=name, zone=zone,
                                                       description="Demo parking location")
            print(f"📍 Created location '{name}' (id={location.id})")

        created = 0
        for vehicle_class, (prefix, count) in DEMO_SLOTS.items():
            for i in range(1, count + 1):
                number = f"{location.id}-{prefix}-{i:02d}"
                try:
                    catalog_service.create_slot(db, location.id, number, vehicle_class,
                                                position_x=float(i), position_y=float(list(DEMO_SLOTS).index(vehicle_class)))
                    created += 1
                except AlreadyExists:
                    continue
        print(f"🅿️  {created} slot(s) created")
        print(f"📊 Capacity: {catalog_store.get_location(db, location.id).capacity}")
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo parking location")
    parser.add_argument("--name", default="Main Campus")
    parser.add_argument("--zone", default="Central")
    args = parser.parse_args()
    main(args.name, args.zone)
