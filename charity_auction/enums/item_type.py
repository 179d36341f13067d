from enum import Enum


class ItemType(str, Enum):
    physical = "physical"
    service = "service"
    experience = "experience"
    nft = "nft"
    digital = "digital"


class AuctionCategory(str, Enum):
    art = "art"
    collectibles = "collectibles"
    fashion = "fashion"
    tech = "tech"
    experiences = "experiences"
    other = "other"
