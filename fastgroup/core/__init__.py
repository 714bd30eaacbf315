from .errors import (  # noqa
    FastGroupError,
    FastGroupInitError,
    InvalidEntity,
    NestedTransaction,
    NotFound,
    ReferenceViolation,
    TransactionFailure,
    UniqueConstraintViolation,
)
from .models import (  # noqa
    AbstractRepository,
    AbstractUnitOfWork,
    GroupRepository,
    RepositoryContext,
    UserRepository,
)
