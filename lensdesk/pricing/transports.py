"""
Transports used by the discount cascade editor to load the hierarchy and
submit discount batches.
"""
import logging

import requests
from django.conf import settings

from lensdesk.core.exceptions import APIError
from . import services
from .discounts import TransportError
from .serializers import ApplyDiscountsSerializer

logger = logging.getLogger('lensdesk.pricing')


class DiscountTransport:
    """Two calls: fetch the hierarchy for a customer, submit one batch"""

    def fetch_hierarchy(self, customer_id):
        raise NotImplementedError

    def apply_discounts(self, customer_id, discounts):
        raise NotImplementedError


class HttpDiscountTransport(DiscountTransport):
    """Talks to the REST API with a bearer token over a requests session"""

    def __init__(self, base_url=None, token=None, timeout=None, session=None):
        config = getattr(settings, 'LENSDESK', {})
        self.base_url = (base_url or config.get('DISCOUNT_API_URL', '')).rstrip('/')
        self.timeout = timeout or config.get('REQUEST_TIMEOUT', 30)
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if token:
            self.set_token(token)

    def set_token(self, token):
        self.session.headers.update({'Authorization': f'Bearer {token}'})

    def login(self, username, password):
        data = self._request('post', '/auth/login/', json={'username': username, 'password': password})
        self.set_token(data['access'])
        return data

    def fetch_hierarchy(self, customer_id):
        return self._request('get', f'/lens-products/discount-hierarchy/{customer_id}/')

    def apply_discounts(self, customer_id, discounts):
        return self._request('post', '/lens-products/apply-discounts/',
                             json={'customerId': customer_id, 'discounts': discounts})

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {str(e)}")
            raise TransportError(f"Could not reach {url}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get('error') if isinstance(body, dict) else None) or response.reason
            logger.warning(f"{method.upper()} {url} returned {response.status_code}: {message}")
            raise TransportError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"{method.upper()} {url} returned a non-JSON body")
            raise TransportError(f"Invalid response from {url}", status_code=response.status_code) from e
        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response from {url}", status_code=response.status_code)
        return body


class LocalDiscountTransport(DiscountTransport):
    """Calls the pricing services in-process, acting as ``user``"""

    def __init__(self, user=None):
        self.user = user

    def fetch_hierarchy(self, customer_id):
        try:
            return services.build_discount_hierarchy(services.get_customer(customer_id))
        except APIError as e:
            raise TransportError(e.message, status_code=e.status_code) from e

    def apply_discounts(self, customer_id, discounts):
        serializer = ApplyDiscountsSerializer(data={'customerId': customer_id, 'discounts': discounts})
        if not serializer.is_valid():
            raise TransportError(f"Invalid discount batch: {serializer.errors}", status_code=400)
        try:
            customer = services.get_customer(customer_id)
        except APIError as e:
            raise TransportError(e.message, status_code=e.status_code) from e
        return services.apply_discounts(customer, serializer.validated_data['discounts'], user=self.user)
