from shipping_rates.core.config import settings
from shipping_rates.core.exceptions import (
    ShippingRatesError,
    InvalidPostalCodeError,
    PostalCodeNotFoundError,
    PostalCodeLookupError,
    ProviderUnavailableError,
    InternalComputationError,
)
