# Import models so Base metadata is aware of them
from .auth import User  # noqa: F401
from .documents import Document, StudyMaterial  # noqa: F401
from .progress import QuizProgress  # noqa: F401
