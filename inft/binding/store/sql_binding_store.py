import logging
from typing import List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from inft.binding.domain.binding import AssetRef, Binding
from inft.binding.store.binding_store import BindingStore
from inft.binding.store.models import Base, BindingModel, RegistryStateModel
from inft.core.domain.exceptions import NotBound

logger = logging.getLogger(__name__)

_STATE_ROW_ID = 1


class SqlBindingStore(BindingStore):
    """
    SQLAlchemy-backed binding store.

    Outside an atomic unit each mutation commits on its own. Inside a unit the
    session only flushes; the coordinator commits on release and rolls the
    session back on failure.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(bind=engine)
        self._session_factory = sessionmaker(bind=engine, autoflush=False)
        self.session: Session = self._session_factory()
        self._in_unit = False
        self._ensure_state_row()

    @classmethod
    def from_url(cls, database_url: str) -> "SqlBindingStore":
        engine = create_engine(database_url, pool_pre_ping=True, future=True)
        return cls(engine)

    def close(self) -> None:
        self.session.close()

    def _ensure_state_row(self) -> None:
        if self.session.get(RegistryStateModel, _STATE_ROW_ID) is None:
            self.session.add(RegistryStateModel(id=_STATE_ROW_ID, total_collateral="0", total_supply="0"))
            self.session.commit()

    def _state(self) -> RegistryStateModel:
        return self.session.get(RegistryStateModel, _STATE_ROW_ID)

    def _finish(self) -> None:
        if self._in_unit:
            self.session.flush()
        else:
            self.session.commit()

    @staticmethod
    def _map_to_domain(model: BindingModel) -> Binding:
        return Binding(
            id=int(model.id),
            personality=AssetRef(model.personality_contract, int(model.personality_id)),
            target=AssetRef(model.target_contract, int(model.target_id)),
            collateral_value=int(model.collateral_value),
        )

    def _model(self, binding_id: int) -> Optional[BindingModel]:
        return self.session.get(BindingModel, str(binding_id))

    # --- Reads ---

    def get(self, binding_id: int) -> Optional[Binding]:
        model = self._model(binding_id)
        return self._map_to_domain(model) if model is not None else None

    def find_by_personality(self, personality: AssetRef) -> Optional[int]:
        model = (
            self.session.query(BindingModel)
            .filter_by(
                personality_contract=personality.contract,
                personality_id=str(personality.token_id),
            )
            .one_or_none()
        )
        return int(model.id) if model is not None else None

    def find_by_target(self, target: AssetRef) -> Optional[int]:
        model = (
            self.session.query(BindingModel)
            .filter_by(target_contract=target.contract, target_id=str(target.token_id))
            .one_or_none()
        )
        return int(model.id) if model is not None else None

    def total_collateral(self) -> int:
        return int(self._state().total_collateral)

    def count(self) -> int:
        return int(self._state().total_supply)

    def list_all(self) -> List[Binding]:
        return [self._map_to_domain(m) for m in self.session.query(BindingModel).all()]

    # --- Mutations ---

    def insert(self, binding: Binding) -> None:
        self.session.add(
            BindingModel(
                id=str(binding.id),
                personality_contract=binding.personality.contract,
                personality_id=str(binding.personality.token_id),
                target_contract=binding.target.contract,
                target_id=str(binding.target.token_id),
                collateral_value=str(binding.collateral_value),
            )
        )
        state = self._state()
        state.total_collateral = str(int(state.total_collateral) + binding.collateral_value)
        state.total_supply = str(int(state.total_supply) + 1)
        self._finish()

    def remove(self, binding_id: int) -> Binding:
        model = self._model(binding_id)
        if model is None:
            raise NotBound("not bound")
        binding = self._map_to_domain(model)
        self.session.delete(model)
        state = self._state()
        state.total_collateral = str(int(state.total_collateral) - binding.collateral_value)
        state.total_supply = str(int(state.total_supply) - 1)
        self._finish()
        return binding

    def update_collateral(self, binding_id: int, value: int) -> Binding:
        model = self._model(binding_id)
        if model is None:
            raise NotBound("not bound")
        previous = int(model.collateral_value)
        model.collateral_value = str(value)
        state = self._state()
        state.total_collateral = str(int(state.total_collateral) + value - previous)
        self._finish()
        return self._map_to_domain(model)

    # --- Transactional ---

    def savepoint(self):
        self._in_unit = True
        return None

    def rollback(self, savepoint) -> None:
        self._in_unit = False
        self.session.rollback()
        logger.debug("binding store session rolled back")

    def release(self, savepoint) -> None:
        self._in_unit = False
        self.session.commit()
