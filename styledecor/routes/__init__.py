from .users import router as users_router
from .services import router as services_router
from .decorators import router as decorators_router
from .bookings import router as bookings_router
from .payments import router as payments_router
from .admin import router as admin_router

routers = [
    users_router,
    services_router,
    decorators_router,
    bookings_router,
    payments_router,
    admin_router,
]
