from dataclasses import dataclass


# fmt: off
@dataclass(frozen=True)
class SweepSummaryModel:
    expired: int = 0   # Records removed because their expiry passed
    corrupt: int = 0   # Records removed because they could not be decoded
    urls: int = 0      # URL container entries removed alongside them

    @property
    def removed(self) -> int:
        return self.expired + self.corrupt
# fmt: on
