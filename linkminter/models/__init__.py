from linkminter.models.link_record_model import LinkRecordModel
from linkminter.models.sweep_summary_model import SweepSummaryModel


__all__ = [
    'LinkRecordModel',
    'SweepSummaryModel',
]
