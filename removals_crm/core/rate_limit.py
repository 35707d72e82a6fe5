from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared limiter; attached to ``app.state`` in ``removals_crm.main``
limiter = Limiter(key_func=get_remote_address)
