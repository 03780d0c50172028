import uuid
from datetime import datetime

import pytest
from passlib.hash import bcrypt

from sstpro import create_app
from sstpro.blueprints import auth, company, technician, history, profile
from sstpro.services.appointment_service import AppointmentService
from sstpro.services.company_service import CompanyService
from sstpro.services.notification_service import NotificationService
from sstpro.services.user_service import UserService

COMPANY_ID = "11111111-1111-1111-1111-111111111111"
OTHER_COMPANY_ID = "22222222-2222-2222-2222-222222222222"
OWNER_ID = "33333333-3333-3333-3333-333333333333"
TECH_ID = "44444444-4444-4444-4444-444444444444"
OTHER_TECH_ID = "55555555-5555-5555-5555-555555555555"
PASSWORD = "segredo123"


def _new_id() -> str:
    return str(uuid.uuid4())


class FakeCompanyRepository:
    def __init__(self):
        self.rows = {
            COMPANY_ID: {"id": COMPANY_ID, "name": "Metalúrgica Alfa", "cnpj": "12.345.678/0001-90",
                         "address": "Rua A, 1", "contact_name": "Ana", "phone": "1199999",
                         "owner_id": OWNER_ID, "active": True, "created_at": None},
            OTHER_COMPANY_ID: {"id": OTHER_COMPANY_ID, "name": "Beta Logística", "cnpj": None,
                               "address": None, "contact_name": None, "phone": None,
                               "owner_id": None, "active": True, "created_at": None},
        }

    def list(self, q=""):
        rows = sorted(self.rows.values(), key=lambda r: r["name"])
        if q:
            rows = [r for r in rows if q.lower() in r["name"].lower() or q in (r["cnpj"] or "")]
        return rows

    def by_id(self, cid):
        return self.rows.get(cid)

    def create(self, data):
        cid = _new_id()
        self.rows[cid] = {"id": cid, "owner_id": None, "active": True, "created_at": None, **data}
        return cid

    def update(self, cid, data):
        if cid not in self.rows:
            return False
        self.rows[cid].update(data)
        return True


class FakeProfileRepository:
    def __init__(self, companies: FakeCompanyRepository):
        self.companies = companies
        hashed = bcrypt.using(rounds=4).hash(PASSWORD)
        self.rows = {
            OWNER_ID: {"id": OWNER_ID, "name": "Ana Alfa", "email": "ana@alfa.com.br", "role": "EMPRESA",
                       "company_id": COMPANY_ID, "registration_number": None, "avatar_url": None,
                       "password_hash": hashed},
            TECH_ID: {"id": TECH_ID, "name": "Carlos Técnico", "email": "carlos@sst.com.br", "role": "TECNICO",
                      "company_id": None, "registration_number": "TST-123", "avatar_url": None,
                      "password_hash": hashed},
            OTHER_TECH_ID: {"id": OTHER_TECH_ID, "name": "Beatriz Técnica", "email": "bia@sst.com.br",
                            "role": "TECNICO", "company_id": None, "registration_number": None,
                            "avatar_url": None, "password_hash": hashed},
        }

    def _with_company(self, row):
        if row is None:
            return None
        comp = self.companies.by_id(row["company_id"]) if row["company_id"] else None
        return {**row, "company_name": comp["name"] if comp else None}

    def by_email(self, email):
        for r in self.rows.values():
            if r["email"].lower() == email.lower():
                return self._with_company(r)
        return None

    def by_id(self, user_id):
        return self._with_company(self.rows.get(user_id))

    def list_technicians(self):
        return [self._with_company(r) for r in self.rows.values() if r["role"] == "TECNICO"]

    def create(self, data):
        uid = _new_id()
        self.rows[uid] = {"id": uid, "avatar_url": None, **data}
        comp = self.companies.by_id(data.get("company_id"))
        if comp and comp["owner_id"] is None:
            comp["owner_id"] = uid
        return uid

    def update(self, user_id, fields):
        self.rows[user_id]["name"] = fields["name"]
        self.rows[user_id]["avatar_url"] = fields["avatar_url"] or None


class FakeAppointmentRepository:
    def __init__(self, companies: FakeCompanyRepository, profiles: FakeProfileRepository):
        self.companies = companies
        self.profiles = profiles
        self.rows = {}

    def _summary(self, row):
        comp = self.companies.by_id(row["company_id"]) or {}
        tech = self.profiles.rows.get(row["technician_id"]) if row["technician_id"] else None
        return {
            "appointment_id": row["id"],
            "company_id": row["company_id"],
            "company_name": comp.get("name"),
            "company_cnpj": comp.get("cnpj"),
            "company_owner_id": comp.get("owner_id"),
            "technician_id": row["technician_id"],
            "technician_name": tech["name"] if tech else None,
            "datetime": row["datetime"],
            "reason": row["reason"],
            "description": row.get("description") or None,
            "status": row["status"],
            "photo_url": row.get("photo_url"),
            "signature_image": row.get("signature_image"),
            "created_at": None,
        }

    def insert(self, data):
        aid = _new_id()
        self.rows[aid] = {"id": aid, "photo_url": None, "signature_image": None, **data}
        return aid

    def list(self, company_id=None, technician_id=None, include_unassigned=False):
        out = []
        for row in self.rows.values():
            if company_id and row["company_id"] != company_id:
                continue
            if technician_id:
                mine = row["technician_id"] == technician_id
                if not (mine or (include_unassigned and row["technician_id"] is None)):
                    continue
            out.append(self._summary(row))
        return sorted(out, key=lambda r: r["datetime"])

    def by_id(self, appointment_id):
        row = self.rows.get(appointment_id)
        return self._summary(row) if row else None

    def datetimes_between(self, start, end, statuses):
        return [r["datetime"] for r in self.rows.values()
                if start <= r["datetime"] < end and r["status"] in statuses]

    def update_status(self, appointment_id, status, technician_id):
        row = self.rows.get(appointment_id)
        if not row:
            return False
        row["status"] = status
        row["technician_id"] = technician_id
        return True

    def claim(self, appointment_id, technician_id):
        row = self.rows.get(appointment_id)
        if not row or row["status"] != "PENDING" or row["technician_id"] is not None:
            return False
        row["status"] = "ACCEPTED"
        row["technician_id"] = technician_id
        return True

    def complete(self, appointment_id, technician_id, report, photo_url, signature_image):
        row = self.rows.get(appointment_id)
        if not row:
            return False
        row["status"] = "COMPLETED"
        row["technician_id"] = row["technician_id"] or technician_id
        row["description"] = report
        row["photo_url"] = photo_url or row.get("photo_url")
        row["signature_image"] = signature_image
        return True

    def delete_pending_own(self, appointment_id, company_id):
        row = self.rows.get(appointment_id)
        if not row or row["company_id"] != company_id or row["status"] != "PENDING":
            return False
        del self.rows[appointment_id]
        return True


class FakeNotificationRepository:
    def __init__(self):
        self.rows = []

    def insert(self, user_id, message, type_, link):
        nid = _new_id()
        self.rows.append({"id": nid, "user_id": user_id, "message": message, "type": type_,
                          "link": link, "read": False, "created_at": datetime(2026, 1, 1, 9, 0)})
        return nid

    def list_for_user(self, user_id):
        return [r for r in reversed(self.rows) if r["user_id"] == user_id]

    def mark_read(self, notification_id, user_id):
        for r in self.rows:
            if r["id"] == notification_id and r["user_id"] == user_id:
                r["read"] = True
                return True
        return False


class FakeVisitReasonRepository:
    def active_labels(self):
        return ["Inspeção NR-12", "Vistoria de EPI"]


@pytest.fixture
def repos():
    companies = FakeCompanyRepository()
    profiles = FakeProfileRepository(companies)
    return {
        "companies": companies,
        "profiles": profiles,
        "appointments": FakeAppointmentRepository(companies, profiles),
        "notifications": FakeNotificationRepository(),
    }


@pytest.fixture
def services(repos):
    notifications = NotificationService(repos["notifications"])
    return {
        "appointments": AppointmentService(repos["appointments"], notifications),
        "companies": CompanyService(repos["companies"]),
        "users": UserService(repos["profiles"]),
        "notifications": notifications,
    }


@pytest.fixture
def app(tmp_path, services, monkeypatch):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "LOG_LEVEL": "WARNING",
    })
    reasons = FakeVisitReasonRepository()
    monkeypatch.setattr(auth, "svc", services["users"])
    monkeypatch.setattr(company, "svc", services["appointments"])
    monkeypatch.setattr(company, "reasons", reasons)
    monkeypatch.setattr(technician, "svc", services["appointments"])
    monkeypatch.setattr(technician, "csvc", services["companies"])
    monkeypatch.setattr(technician, "usvc", services["users"])
    monkeypatch.setattr(technician, "reasons", reasons)
    monkeypatch.setattr(history, "svc", services["appointments"])
    monkeypatch.setattr(profile, "svc", services["users"])
    monkeypatch.setattr(profile, "nsvc", services["notifications"])
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, user_row, company_name=None):
    with client.session_transaction() as sess:
        sess["user_id"] = user_row["id"]
        sess["name"] = user_row["name"]
        sess["email"] = user_row["email"]
        sess["role"] = user_row["role"]
        sess["company_id"] = user_row["company_id"]
        sess["company_name"] = company_name
    return client


@pytest.fixture
def company_client(client, repos):
    return _login(client, repos["profiles"].rows[OWNER_ID], "Metalúrgica Alfa")


@pytest.fixture
def tech_client(client, repos):
    return _login(client, repos["profiles"].rows[TECH_ID])
