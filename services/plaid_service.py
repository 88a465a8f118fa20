# services/plaid_service.py
import logging
from typing import Dict

from plaid.exceptions import ApiException
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products

from plaid_config import client
from services.errors import UpstreamError

logger = logging.getLogger(__name__)


def create_link_token(client_user_id: str) -> str:
    request = LinkTokenCreateRequest(
        products=[Products("investments")],
        client_name="Net Worth Ledger",
        country_codes=[CountryCode("US")],
        language="en",
        user=LinkTokenCreateRequestUser(client_user_id=client_user_id),
    )
    try:
        response = client.link_token_create(request)
    except ApiException as e:
        logger.error("Plaid link token failed status=%s body=%s", e.status, e.body)
        raise UpstreamError("plaid link_token_create failed", upstream_status=e.status, body=e.body) from e
    return response.link_token


def exchange_public_token(public_token: str) -> Dict[str, str]:
    request = ItemPublicTokenExchangeRequest(public_token=public_token)
    try:
        response = client.item_public_token_exchange(request)
    except ApiException as e:
        logger.error("Plaid token exchange failed status=%s body=%s", e.status, e.body)
        raise UpstreamError("plaid item_public_token_exchange failed", upstream_status=e.status, body=e.body) from e

    access_token = getattr(response, "access_token", None)
    item_id = getattr(response, "item_id", None)
    if not access_token or not item_id:
        raise UpstreamError("plaid exchange response missing access_token/item_id")
    return {"access_token": access_token, "item_id": item_id}
