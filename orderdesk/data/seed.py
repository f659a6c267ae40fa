# orderdesk/data/seed.py
from orderdesk.data.database import SessionLocal
from orderdesk.services.employee_service import EmployeeService

DEFAULT_EMPLOYEES = [
    ("mostrador-1", "Mostrador", "mostrador"),
    ("caja-1", "Caja", "caja"),
    ("admin-1", "Admin", "admin"),
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # only missing employees are created
        service = EmployeeService(db)
        for employee_id, name, role in DEFAULT_EMPLOYEES:
            service.ensure_employee(employee_id, name, role)
    finally:
        db.close()
