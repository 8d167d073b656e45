from app import create_app
from app.models.store import Store
from app.utils.constants import AccountRole
from app.utils.security import generate_hash


def ensure_user(store: Store, email: str, password: str, role: str, is_admin: bool = False):
    """
    Ensure a user with `email` exists in the store.
    - If exists: update password hash and role claims (idempotent).
    - If not:   create a new user.
    """
    u = store.find_user(email)
    if u:
        store.update_user(u["user_id"], password_hash=generate_hash(password),
                          role=role, is_admin=is_admin)
        return u["user_id"]
    return store.create_user(email, generate_hash(password), role, is_admin=is_admin)


def main():
    app = create_app()
    with app.app_context():
        store = Store.instance()

        # ---- Admin / Owner / Renter demo accounts ----
        ensure_user(store, "admin@example.com", "Admin123", AccountRole.ADMIN, is_admin=True)
        owner_id = ensure_user(store, "owner@example.com", "Owner123", AccountRole.OWNER)
        ensure_user(store, "renter@example.com", "Renter123", AccountRole.USER)

        # ---- Demo vehicles (create only if none exist) ----
        if not store.vehicles:
            for name, price in (("Toyota Corolla", 45), ("Honda Civic", 50), ("Yamaha MT-07", 40)):
                store.create_vehicle({
                    "owner_id": owner_id, "name": name, "price_per_day": price,
                    "approved": True, "status": "approved",
                })
            store.create_vehicle({
                "owner_id": owner_id, "name": "Isuzu N-Series", "price_per_day": 95,
            })

        store.save()

        print("Seed complete.")
        print("Admin login:   admin@example.com / Admin123")
        print("Owner login:   owner@example.com / Owner123")
        print("Renter login:  renter@example.com / Renter123")


if __name__ == "__main__":
    main()
