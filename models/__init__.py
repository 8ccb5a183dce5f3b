from models.db_storage import DBStorage
from models.user import User
from models.refresh_token import RefreshToken
from models.password_reset_token import PasswordResetToken

# Process-wide storage; the app factory configures the engine.
storage = DBStorage()
