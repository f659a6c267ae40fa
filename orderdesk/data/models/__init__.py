# import of all models so SQLAlchemy registers them in Base.metadata

from orderdesk.data.models.employee import EmployeeModel
from orderdesk.data.models.order import OrderModel
from orderdesk.data.models.order_line import OrderLineModel

__all__ = ["EmployeeModel", "OrderModel", "OrderLineModel"]
