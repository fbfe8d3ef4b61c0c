# Import every model so Base.metadata and relationship() lookups see them.
from expense_tracker.db.session import Base  # noqa: F401
from expense_tracker.models.user import User  # noqa: F401
from expense_tracker.models.group import Group  # noqa: F401
from expense_tracker.models.group_member import GroupMember  # noqa: F401
from expense_tracker.models.group_invitation import GroupInvitation  # noqa: F401
from expense_tracker.models.expense import Expense  # noqa: F401
from expense_tracker.models.expense_split import ExpenseSplit  # noqa: F401
