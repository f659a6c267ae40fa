from sqlalchemy.orm import Session
from orderdesk.data.models.employee import EmployeeModel

class EmployeeRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_employee(self, employee_id: str) -> EmployeeModel | None:
        return self.db.get(EmployeeModel, employee_id)

    def create_employee(self, employee: EmployeeModel) -> EmployeeModel:
        self.db.add(employee)
        self.db.commit()
        self.db.refresh(employee)
        return employee
