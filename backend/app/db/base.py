from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.application import Application  # noqa: F401
from backend.app.models.payment import Payment  # noqa: F401
from backend.app.models.receipt import Receipt  # noqa: F401
from backend.app.models.quotation import Quotation  # noqa: F401
from backend.app.models.donation import Donation  # noqa: F401
from backend.app.models.service import Service  # noqa: F401
from backend.app.models.document_requirement import ServiceDocumentRequirement  # noqa: F401
from backend.app.models.notification import Notification  # noqa: F401
