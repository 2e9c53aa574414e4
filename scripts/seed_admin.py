"""Seed an administrator user with an admin referral code."""

import os

from app import create_app
from services import current_services

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "AdminPass123")
ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Platform Admin")


def main() -> None:
    app = create_app()
    with app.app_context():
        services = current_services()
        admin = services.identities.find_by_email(ADMIN_EMAIL)
        if admin is None:
            admin = services.identities.create(
                email=ADMIN_EMAIL,
                password=ADMIN_PASSWORD,
                full_name=ADMIN_NAME,
                role="admin",
                account_status="active",
                email_verified=True,
                referral_code=services.codec.generate("admin"),
            )
            action = "created"
        else:
            changes = {"role": "admin", "account_status": "active", "email_verified": True}
            if not (admin.referral_code or "").startswith("ADM-"):
                changes["referral_code"] = services.codec.generate("admin")
            admin = services.identities.update(admin.id, **changes)
            admin = services.identities.set_password(admin.id, ADMIN_PASSWORD)
            action = "updated"
        print(f"Admin user {action}: {admin.email}")
        print(f"Referral code: {admin.referral_code}")


if __name__ == "__main__":
    main()
