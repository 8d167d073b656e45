"""
reset_data.py
-------------
Clear all stored data (users, vehicles, bookings) from the local data.pkl file.

Usage:
    $ python reset_data.py

Repopulate demo data afterwards with:
    $ python seeds.py
"""

from app.models.store import Store


def main():
    Store.instance().clear()
    print("data.pkl has been cleared.")
    print("Tip: run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
