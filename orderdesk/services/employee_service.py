from sqlalchemy.orm import Session
from orderdesk.data.models.employee import EmployeeModel
from orderdesk.repos.employee_repo import EmployeeRepo
from orderdesk.domain.schemas import EmployeeRead


class EmployeeService:
    """Identity collaborator, employees are already authenticated upstream."""

    def __init__(self, db: Session):
        self.repo = EmployeeRepo(db)

    def ensure_employee(self, employee_id: str, name: str, role: str = "mostrador") -> EmployeeRead:
        existing = self.repo.get_employee(employee_id)
        if existing:
            return EmployeeRead.model_validate(existing)

        created = self.repo.create_employee(EmployeeModel(id=employee_id, name=name, role=role))
        return EmployeeRead.model_validate(created)

    def get_employee(self, employee_id: str) -> EmployeeRead:
        employee = self.repo.get_employee(employee_id)
        if not employee:
            raise ValueError("Employee not found")
        return EmployeeRead.model_validate(employee)
