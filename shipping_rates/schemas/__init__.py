from shipping_rates.schemas.shipping import (
    PostalAddressResponse,
    RateRequest,
    ServiceQuoteResponse,
    RateQuoteResponse,
    ErrorResponse,
)
