from sqlalchemy import Column, String
from orderdesk.data.database import Base

class EmployeeModel(Base):
    __tablename__ = "employees"
    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="mostrador")  # mostrador, caja, admin
