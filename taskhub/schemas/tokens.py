# taskhub/schemas/tokens.py
from taskhub.schemas.common import CamelModel
from taskhub.schemas.user import UserOut


class Token(CamelModel):
    user: UserOut
    token: str
    token_type: str = "Bearer"
