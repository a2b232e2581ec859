#!/usr/bin/env python3
"""
Registry Bootstrap Script

Creates the first ADMIN account. Registration through the API requires an
existing admin, so a fresh deployment starts here. Optionally seeds sample
STAFF/AUDITOR accounts and a few land plots for development.

Usage:
    python scripts/create_admin.py --email admin@example.com --password AdminPass123
    python scripts/create_admin.py --email admin@example.com --password AdminPass123 --with-samples

Reads the same environment (.env) as the API: STORE_BACKEND, SUPABASE_URL,
SUPABASE_KEY, BCRYPT_ROUNDS, ...
"""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import ConflictError, LandRegistryError
from domain.land_plot import PlotStatus, SizeUnit
from domain.user import Role
from services.auth_service import NewUser
from services.container import RegistryServices, build_services
from services.land_service import NewLandPlot
from services.settings import Settings

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    NewUser(
        email="staff@example.com",
        password="StaffPass123",
        first_name="John",
        last_name="Staff",
        role=Role.STAFF,
    ),
    NewUser(
        email="auditor@example.com",
        password="AuditorPass123",
        first_name="Jane",
        last_name="Auditor",
        role=Role.AUDITOR,
    ),
]

SAMPLE_PLOTS = [
    NewLandPlot(
        plot_number="GB001",
        location="Tamale North District",
        size=Decimal("2.5"),
        size_unit=SizeUnit.ACRES,
        owner_name="Gbewaa Palace",
        description="Prime residential land near main road",
    ),
    NewLandPlot(
        plot_number="GB002",
        location="Tamale South District",
        size=Decimal("1.8"),
        size_unit=SizeUnit.HECTARES,
        owner_name="Gbewaa Palace",
        status=PlotStatus.RESERVED,
        description="Commercial land with excellent access",
    ),
    NewLandPlot(
        plot_number="GB003",
        location="Tamale Central District",
        size=Decimal("3000"),
        size_unit=SizeUnit.SQ_METERS,
        owner_name="Gbewaa Palace",
        description="Mixed-use development opportunity",
    ),
]


def register_if_missing(services: RegistryServices, data: NewUser) -> bool:
    """Register a user; False if the email is already taken."""
    try:
        user = services.auth.register(data)
    except ConflictError:
        print(f"  [SKIP] {data.email} already exists")
        return False
    print(f"  [OK] {user.role.value} user created: {user.email}")
    return True


def seed_samples(services: RegistryServices) -> None:
    print("Creating sample users...")
    for data in SAMPLE_USERS:
        register_if_missing(services, data)

    print("Creating sample land plots...")
    for data in SAMPLE_PLOTS:
        try:
            plot = services.lands.create_land_plot(data)
        except ConflictError:
            print(f"  [SKIP] Plot {data.plot_number} already exists")
            continue
        print(f"  [OK] Created plot: {plot.plot_number} - {plot.formatted_size}")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Create the first admin user of the land registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--first-name", default="System", help="Admin first name")
    parser.add_argument("--last-name", default="Administrator", help="Admin last name")
    parser.add_argument(
        "--with-samples",
        action="store_true",
        help="Also create sample staff/auditor users and land plots"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        services = build_services(Settings.from_env())
        if services.settings.store_backend == "memory":
            print("WARNING: STORE_BACKEND=memory; nothing will be persisted")

        print("Creating admin user...")
        register_if_missing(
            services,
            NewUser(
                email=args.email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
                role=Role.ADMIN,
            ),
        )

        if args.with_samples:
            seed_samples(services)

        print("\nSetup complete.")
        return 0

    except LandRegistryError as e:
        print(f"\nERROR: {e.message}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nSetup interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
