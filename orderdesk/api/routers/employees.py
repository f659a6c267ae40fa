from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from orderdesk.data.database import get_db
from orderdesk.services.employee_service import EmployeeService
from orderdesk.domain.schemas import EmployeeRead

router = APIRouter(prefix="/employees", tags=["employees"])

@router.get("/{employee_id}", response_model=EmployeeRead)
def get_employee(employee_id: str, db: Session = Depends(get_db)):
    service = EmployeeService(db)
    try:
        return service.get_employee(employee_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
