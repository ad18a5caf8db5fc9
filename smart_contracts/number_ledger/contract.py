from algopy import ARC4Contract, BoxMap, Txn, UInt64, arc4

from smart_contracts.number_ledger.constants import NUMBER_BOX_PREFIX


class NumberAppended(arc4.Struct):
    who: arc4.Address
    index: arc4.UInt64
    number: arc4.UInt64


class NumberLedger(ARC4Contract):
    """Keyed table index -> number, filled in by the offchain worker's signed calls."""

    def __init__(self) -> None:
        self.numbers = BoxMap(UInt64, UInt64, key_prefix=NUMBER_BOX_PREFIX)

    @arc4.abimethod
    def save_number(self, index: arc4.UInt64, number: arc4.UInt64) -> None:
        self.numbers[index.native] = number.native
        arc4.emit(NumberAppended(who=arc4.Address(Txn.sender), index=index, number=number))

    @arc4.abimethod(readonly=True)
    def get_number(self, index: arc4.UInt64) -> arc4.UInt64:
        # An empty slot reads as 0.
        return arc4.UInt64(self.numbers.get(index.native, default=UInt64(0)))
