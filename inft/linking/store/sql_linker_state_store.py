import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.orm import Session

from inft.binding.store.models import LinkerStateModel, WhitelistEntryModel
from inft.core.transaction.transactional import Transactional
from inft.linking.domain.pricing_policy import PricingPolicy
from inft.linking.domain.whitelist import WhitelistMask

logger = logging.getLogger(__name__)

_STATE_ROW_ID = 1


@dataclass(frozen=True)
class LinkerState:
    next_id: int
    pricing: PricingPolicy
    whitelist: Dict[str, WhitelistMask]


class SqlLinkerStateStore(Transactional):
    """
    Persists what the orchestrator owns: the next id, the pricing policy and
    the target contract whitelist.

    Works on the binding store's session, so linker state and bindings are
    committed or rolled back together.
    """

    def __init__(self, session: Session):
        self.session = session
        self._in_unit = False

    def load(self) -> Optional[LinkerState]:
        model = self.session.get(LinkerStateModel, _STATE_ROW_ID)
        if model is None:
            return None
        pricing = PricingPolicy(
            price=int(model.link_price),
            fee=int(model.link_fee),
            fee_destination=model.fee_destination,
        )
        whitelist = {
            entry.target_contract: WhitelistMask(entry.mask)
            for entry in self.session.query(WhitelistEntryModel).all()
        }
        return LinkerState(next_id=int(model.next_id), pricing=pricing, whitelist=whitelist)

    def save(self, state: LinkerState) -> None:
        model = self.session.get(LinkerStateModel, _STATE_ROW_ID)
        if model is None:
            model = LinkerStateModel(id=_STATE_ROW_ID)
            self.session.add(model)
        model.next_id = str(state.next_id)
        model.link_price = str(state.pricing.price)
        model.link_fee = str(state.pricing.fee)
        model.fee_destination = state.pricing.fee_destination

        stored = {e.target_contract: e for e in self.session.query(WhitelistEntryModel).all()}
        for contract, entry in stored.items():
            if contract not in state.whitelist:
                self.session.delete(entry)
        for contract, mask in state.whitelist.items():
            entry = stored.get(contract)
            if entry is None:
                self.session.add(WhitelistEntryModel(target_contract=contract, mask=int(mask)))
            else:
                entry.mask = int(mask)

        if self._in_unit:
            self.session.flush()
        else:
            self.session.commit()

    # --- Transactional ---

    def savepoint(self):
        self._in_unit = True
        return None

    def rollback(self, savepoint) -> None:
        self._in_unit = False
        self.session.rollback()
        logger.debug("linker state session rolled back")

    def release(self, savepoint) -> None:
        self._in_unit = False
        self.session.commit()
