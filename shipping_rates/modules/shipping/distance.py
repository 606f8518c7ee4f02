"""
Deterministic distance estimator

Offline stand-in for a distance matrix. The estimate is a pure function of the
two normalized postal codes: CRC-32 of the concatenated codes, reduced into a
fixed range chosen by whether both addresses are in the same region.

    same region:      50 + (hash % 200)   -> [50, 250) km
    different region: 500 + (hash % 1500) -> [500, 2000) km

The ranges don't overlap, so a same-region pair is always closer than a
cross-region pair.
"""
import zlib

from shipping_rates.modules.shipping.models import PostalAddress

SAME_REGION_BASE_KM = 50
SAME_REGION_SPAN_KM = 200
CROSS_REGION_BASE_KM = 500
CROSS_REGION_SPAN_KM = 1500


def postal_pair_hash(origin_code: str, destination_code: str) -> int:
    """Non-negative, process-independent hash of an ordered code pair."""
    return zlib.crc32(f"{origin_code}{destination_code}".encode("ascii"))


class DeterministicDistanceEstimator:
    """Estimates road distance in km between two resolved addresses."""

    def estimate(self, origin: PostalAddress, destination: PostalAddress) -> int:
        hash_value = postal_pair_hash(origin.code, destination.code)

        if same_region(origin, destination):
            return SAME_REGION_BASE_KM + (hash_value % SAME_REGION_SPAN_KM)
        return CROSS_REGION_BASE_KM + (hash_value % CROSS_REGION_SPAN_KM)


def same_region(origin: PostalAddress, destination: PostalAddress) -> bool:
    return origin.region.strip().upper() == destination.region.strip().upper()
