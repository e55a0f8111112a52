from slowapi import Limiter
from slowapi.util import get_remote_address

# Partagé entre main (handler) et les routers (décorateurs)
limiter = Limiter(key_func=get_remote_address)
