# tsoam/models/__init__.py
# Import every model so relationships resolve and Base.metadata is complete.
from tsoam.models.users import AccountRequest, PasswordReset, User  # noqa: F401
from tsoam.models.homecells import District, HomeCell, HomeCellAssignment, Zone  # noqa: F401
from tsoam.models.members import Member, Tithe  # noqa: F401
from tsoam.models.finance import FinancialTransaction  # noqa: F401
from tsoam.models.hr import Employee, PayrollRecord, PerformanceReview  # noqa: F401
from tsoam.models.leave import LeaveBalance, LeaveRequest, LeaveType  # noqa: F401
from tsoam.models.payroll_approval import (  # noqa: F401
    ApprovalAction,
    DisbursementReport,
    FinanceNotification,
    HRFinanceNotice,
    PayrollBatch,
    PayrollBatchItem,
)
from tsoam.models.events import ChurchEvent, EventRegistration  # noqa: F401
from tsoam.models.appointments import Appointment  # noqa: F401
from tsoam.models.welfare import WelfareApproval, WelfareRequest  # noqa: F401
from tsoam.models.messages import Message  # noqa: F401
from tsoam.models.inventory import InventoryItem  # noqa: F401
from tsoam.models.modules import ChurchSubscription, Module, ModuleAccessLog, ModuleFeature  # noqa: F401
from tsoam.models.system_log import SystemLog  # noqa: F401
