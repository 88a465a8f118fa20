from .user import User
from .holding import Holding
from .wishlist import WishlistItem
from .access_token import OAuthToken
