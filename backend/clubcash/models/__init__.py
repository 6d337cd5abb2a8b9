from .players import Player, CreditRecord, PaymentReceipt
from .sessions import CashSession, PokerTable, ChipType
from .transactions import BuyIn, CashOut, RakeEntry
from .dealers import Dealer, DealerTip, DealerPayout
from .audit import AuditLog, CancelledBuyIn

__all__ = [
    'Player', 'CreditRecord', 'PaymentReceipt',
    'CashSession', 'PokerTable', 'ChipType',
    'BuyIn', 'CashOut', 'RakeEntry',
    'Dealer', 'DealerTip', 'DealerPayout',
    'AuditLog', 'CancelledBuyIn',
]
