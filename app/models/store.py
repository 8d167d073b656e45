import atexit
import os
import pickle
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path

from app.exceptions import StorageUnavailableError
from app.utils.constants import ACTIVE_BOOKING_STATES, OwnerRequestStatus
from app.utils.logger import get_logger

log = get_logger(__name__)

# ---- Paths ----
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_PATH = BASE_DIR / "data.pkl"
DEFAULT_TIMEOUT = 5.0

MAIN_FILE = "main"


class Store:
    """
    Process-wide store of users, vehicles, owner requests and bookings.

    Users, vehicles and owner requests live in one pickle file; each
    vehicle's bookings live in their own file, so writes for different
    vehicles never share a file lock.

    A write holds the lock of the file it changes for its whole duration:
    it builds the new state under the short in-memory lock ``_rw``, writes
    the file without holding ``_rw``, and only then publishes the change in
    memory. Readers only ever take ``_rw`` and therefore see committed data
    and never wait on disk I/O. If the file write fails nothing is published.
    Every lock wait is bounded by ``timeout`` and fails with
    ``StorageUnavailableError``.
    """

    _inst = None
    _inst_lock = threading.Lock()
    _atexit_registered = False

    def __init__(self, path: str | os.PathLike | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.path = str(path or DEFAULT_DATA_PATH)
        self.bookings_dir = str(Path(self.path).with_name(Path(self.path).stem + "_bookings"))
        self.timeout = timeout
        self.users: dict[str, dict] = {}
        self.vehicles: dict[str, dict] = {}
        self.owner_requests: dict[str, dict] = {}
        self.bookings: dict[str, object] = {}
        self._rw = threading.RLock()
        self._vehicle_locks: dict[str, threading.Lock] = {}
        self._file_locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

        log.info("Using store file %s", self.path)
        self._load()

        # Automatically save on exit (skipped in test environments)
        if not Store._atexit_registered and os.getenv("APP_ENV") != "test":
            atexit.register(self.save)
            Store._atexit_registered = True

    # ---------- Singleton ----------
    @classmethod
    def instance(cls, path: str | os.PathLike | None = None, timeout: float | None = None):
        """Return the global singleton instance of Store."""
        with cls._inst_lock:
            if cls._inst is None:
                cls._inst = Store(path or DEFAULT_DATA_PATH, timeout or DEFAULT_TIMEOUT)
        return cls._inst

    @classmethod
    def reset_instance(cls, store: "Store | None" = None):
        """Replace the singleton (used by the app factory and tests)."""
        with cls._inst_lock:
            cls._inst = store

    # ---------- Locking ----------
    def _acquire(self, lock, what: str):
        if not lock.acquire(timeout=self.timeout):
            log.warning("Timed out after %.2fs waiting for %s", self.timeout, what)
            raise StorageUnavailableError()

    def _named_lock(self, registry: dict, key: str) -> threading.Lock:
        with self._locks_guard:
            return registry.setdefault(key, threading.Lock())

    @contextmanager
    def _committed(self):
        self._acquire(self._rw, "store lock")
        try:
            yield
        finally:
            self._rw.release()

    @contextmanager
    def vehicle_lock(self, vehicle_id: str):
        """Exclusive section for one vehicle; other vehicles are not blocked."""
        vid = str(vehicle_id)
        lock = self._named_lock(self._vehicle_locks, vid)
        self._acquire(lock, f"vehicle {vid}")
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def _writing(self, key: str):
        """Serialize writers of one file (the main file or one vehicle's bookings)."""
        lock = self._named_lock(self._file_locks, key)
        self._acquire(lock, f"{key} file")
        try:
            yield
        finally:
            lock.release()

    # ---------- Persistence ----------
    def _bookings_path(self, vehicle_id: str) -> str:
        return os.path.join(self.bookings_dir, f"{vehicle_id}.pkl")

    def _load(self):
        """Load data from the pickle files, or start empty if unavailable or invalid."""
        if os.path.exists(self.path):
            try:
                with open(self.path, "rb") as f:
                    data = pickle.load(f)
            except (OSError, pickle.UnpicklingError, EOFError) as e:
                log.error("Load failed (%s); starting empty.", e)
                data = {}

            if isinstance(data, dict):
                self.users = data.get("users", {}) or {}
                self.vehicles = data.get("vehicles", {}) or {}
                self.owner_requests = data.get("owner_requests", {}) or {}
            else:
                # Incompatible data format: back up the old file and start empty
                bak = self.path + ".bak"
                os.replace(self.path, bak)
                log.warning("Incompatible store (%s); backed up to %s. Starting empty.",
                            type(data).__name__, bak)

        if os.path.isdir(self.bookings_dir):
            for name in sorted(os.listdir(self.bookings_dir)):
                if not name.endswith(".pkl"):
                    continue
                try:
                    with open(os.path.join(self.bookings_dir, name), "rb") as f:
                        self.bookings.update(pickle.load(f))
                except (OSError, pickle.UnpicklingError, EOFError) as e:
                    log.error("Skipping unreadable bookings file %s (%s)", name, e)

        log.info("Loaded: users=%d, vehicles=%d, bookings=%d",
                 len(self.users), len(self.vehicles), len(self.bookings))

    def _dump(self, path: str, payload: dict):
        """Write one payload to ``path`` safely (atomic replace)."""
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp = path + ".tmp"
        with open(tmp, "wb") as f:
            pickle.dump(payload, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)

    def _persist(self, path: str, payload: dict):
        """Write a snapshot; on I/O failure report storage down (nothing was published)."""
        try:
            self._dump(path, payload)
        except OSError as e:
            log.error("Persist to %s failed (%s); change discarded", path, e)
            raise StorageUnavailableError() from e

    def _main_payload(self, users=None, vehicles=None, owner_requests=None) -> dict:
        """Snapshot of the main file; call with ``_rw`` held."""
        return {
            "users": dict(self.users if users is None else users),
            "vehicles": dict(self.vehicles if vehicles is None else vehicles),
            "owner_requests": dict(self.owner_requests if owner_requests is None else owner_requests),
        }

    def _vehicle_bookings(self, vid: str) -> dict:
        """Snapshot of one vehicle's bookings; call with ``_rw`` held."""
        return {bid: b for bid, b in self.bookings.items() if b.vehicle_id == vid}

    def save(self):
        """Write every file from the current committed state."""
        log.info("Saving to %s", self.path)
        with self._writing(MAIN_FILE):
            with self._committed():
                payload = self._main_payload()
            self._persist(self.path, payload)
        with self._committed():
            vids = {b.vehicle_id for b in self.bookings.values()}
        for vid in vids:
            with self._writing(vid):
                with self._committed():
                    payload = self._vehicle_bookings(vid)
                self._persist(self._bookings_path(vid), payload)

    def clear(self):
        with self._writing(MAIN_FILE):
            self._persist(self.path, {"users": {}, "vehicles": {}, "owner_requests": {}})
            if os.path.isdir(self.bookings_dir):
                for name in os.listdir(self.bookings_dir):
                    os.remove(os.path.join(self.bookings_dir, name))
            with self._committed():
                self.users.clear()
                self.vehicles.clear()
                self.owner_requests.clear()
                self.bookings.clear()

    # ---------- Users ----------
    def find_user(self, email: str) -> dict | None:
        """Find a user by email (case-insensitive)."""
        key = (email or "").strip().lower()
        with self._committed():
            for u in self.users.values():
                if u["email"] == key:
                    return dict(u)
        return None

    def get_user(self, user_id: str) -> dict | None:
        with self._committed():
            u = self.users.get(str(user_id))
            return dict(u) if u else None

    def create_user(self, email: str, password_hash: str, role: str, is_admin: bool = False) -> str:
        """Create a new user and return its ID."""
        key = (email or "").strip().lower()
        uid = str(uuid.uuid4())
        record = {
            "user_id": uid,
            "email": key,
            "password_hash": password_hash,
            "role": role,
            "is_admin": bool(is_admin),
        }
        with self._writing(MAIN_FILE):
            with self._committed():
                if any(u["email"] == key for u in self.users.values()):
                    raise ValueError("Email already registered")
                payload = self._main_payload(users={**self.users, uid: record})
            self._persist(self.path, payload)
            with self._committed():
                self.users[uid] = record
        return uid

    def update_user(self, user_id: str, **updates) -> bool:
        uid = str(user_id)
        with self._writing(MAIN_FILE):
            with self._committed():
                u = self.users.get(uid)
                if u is None:
                    return False
                record = {**u, **updates}
                payload = self._main_payload(users={**self.users, uid: record})
            self._persist(self.path, payload)
            with self._committed():
                self.users[uid] = record
        return True

    # ---------- Owner requests ----------
    def create_owner_request(self, user_id: str, note: str, created_at) -> dict:
        """Record a pending request; ValueError if the user already has one pending."""
        uid = str(user_id)
        rid = str(uuid.uuid4())
        record = {
            "request_id": rid,
            "user_id": uid,
            "note": note,
            "status": OwnerRequestStatus.PENDING,
            "created_at": created_at,
        }
        with self._writing(MAIN_FILE):
            with self._committed():
                if any(r["user_id"] == uid and r["status"] == OwnerRequestStatus.PENDING
                       for r in self.owner_requests.values()):
                    raise ValueError("Request already pending")
                payload = self._main_payload(owner_requests={**self.owner_requests, rid: record})
            self._persist(self.path, payload)
            with self._committed():
                self.owner_requests[rid] = record
        return dict(record)

    def get_owner_request(self, request_id: str) -> dict | None:
        with self._committed():
            r = self.owner_requests.get(str(request_id))
            return dict(r) if r else None

    def list_owner_requests(self) -> list[dict]:
        with self._committed():
            return [dict(r) for r in self.owner_requests.values()]

    def decide_owner_request(self, request_id: str, new_status: str, user_updates: dict | None = None):
        """
        Move a pending request to ``new_status`` and apply ``user_updates`` to
        its user in the same write. Returns the updated request, or None if
        the request is no longer pending.
        """
        rid = str(request_id)
        with self._writing(MAIN_FILE):
            with self._committed():
                req = self.owner_requests.get(rid)
                if req is None or req["status"] != OwnerRequestStatus.PENDING:
                    return None
                new_req = {**req, "status": new_status}
                users = dict(self.users)
                if user_updates and req["user_id"] in users:
                    users[req["user_id"]] = {**users[req["user_id"]], **user_updates}
                payload = self._main_payload(users=users,
                                             owner_requests={**self.owner_requests, rid: new_req})
            self._persist(self.path, payload)
            with self._committed():
                self.owner_requests[rid] = new_req
                if user_updates and req["user_id"] in self.users:
                    self.users[req["user_id"]] = users[req["user_id"]]
        return dict(new_req)

    # ---------- Vehicles ----------
    def create_vehicle(self, data: dict) -> str:
        """Create a new vehicle record and return its ID."""
        vid = str(uuid.uuid4())
        record = {
            "vehicle_id": vid,
            "owner_id": str(data["owner_id"]),
            "name": data.get("name", ""),
            "price_per_day": float(data.get("price_per_day") or 0),
            "approved": bool(data.get("approved", False)),
            "status": data.get("status", "pending_approval"),
        }
        with self._writing(MAIN_FILE):
            with self._committed():
                payload = self._main_payload(vehicles={**self.vehicles, vid: record})
            self._persist(self.path, payload)
            with self._committed():
                self.vehicles[vid] = record
        return vid

    def get_vehicle(self, vehicle_id: str) -> dict | None:
        with self._committed():
            v = self.vehicles.get(str(vehicle_id))
            return dict(v) if v else None

    def list_vehicles(self) -> list[dict]:
        with self._committed():
            return [dict(v) for v in self.vehicles.values()]

    def update_vehicle(self, vehicle_id: str, **updates) -> bool:
        """Update vehicle attributes; return True if updated."""
        vid = str(vehicle_id)
        with self._writing(MAIN_FILE):
            with self._committed():
                v = self.vehicles.get(vid)
                if v is None:
                    return False
                record = {**v, **{k: val for k, val in updates.items() if val is not None}}
                payload = self._main_payload(vehicles={**self.vehicles, vid: record})
            self._persist(self.path, payload)
            with self._committed():
                self.vehicles[vid] = record
        return True

    # ---------- Bookings ----------
    def get_booking(self, booking_id: str):
        with self._committed():
            return self.bookings.get(str(booking_id))

    def bookings_for_vehicle(self, vehicle_id: str) -> list:
        vid = str(vehicle_id)
        with self._committed():
            return [b for b in self.bookings.values() if b.vehicle_id == vid]

    def bookings_for_renter(self, renter_id: str) -> list:
        rid = str(renter_id)
        with self._committed():
            return [b for b in self.bookings.values() if b.renter_id == rid]

    def bookings_for_owner(self, owner_id: str) -> list:
        oid = str(owner_id)
        with self._committed():
            owned = {vid for vid, v in self.vehicles.items() if v.get("owner_id") == oid}
            return [b for b in self.bookings.values() if b.vehicle_id in owned]

    def all_bookings(self) -> list:
        with self._committed():
            return list(self.bookings.values())

    def insert_booking(self, booking) -> bool:
        """
        Insert only if no active booking on the same vehicle overlaps.
        Returns False (nothing written) on conflict.
        """
        vid = booking.vehicle_id
        with self._writing(vid):
            with self._committed():
                for other in self.bookings.values():
                    if (other.vehicle_id == vid
                            and other.status in ACTIVE_BOOKING_STATES
                            and other.overlaps(booking.start_date, booking.end_date)):
                        return False
                payload = self._vehicle_bookings(vid)
            payload[booking.booking_id] = booking
            self._persist(self._bookings_path(vid), payload)
            with self._committed():
                self.bookings[booking.booking_id] = booking
        return True

    def compare_and_set_status(self, booking_id: str, expected: str, new: str):
        """
        Set the status only if it still equals ``expected``.
        Returns the updated booking, or None if the row changed underneath.
        """
        bid = str(booking_id)
        current = self.get_booking(bid)
        if current is None:
            return None
        vid = current.vehicle_id
        with self._writing(vid):
            with self._committed():
                current = self.bookings.get(bid)
                if current is None or current.status != expected:
                    return None
                updated = current.with_status(new)
                payload = self._vehicle_bookings(vid)
            payload[bid] = updated
            self._persist(self._bookings_path(vid), payload)
            with self._committed():
                self.bookings[bid] = updated
        return updated
