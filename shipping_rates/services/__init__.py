# Services layer: I/O clients and the rate orchestration
from shipping_rates.services.postal_code_client import PostalCodeResolver
from shipping_rates.services.rate_provider_client import RateQuoteProvider
from shipping_rates.services.shipping_service import ShippingRateService, build_package
