from .listing import Listing, ListingType, NaturalKeyType, PlaceCategory

__all__ = ["Listing", "ListingType", "NaturalKeyType", "PlaceCategory"]
