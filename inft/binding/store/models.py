from sqlalchemy import Column, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BindingModel(Base):
    __tablename__ = "inft_bindings"
    __table_args__ = (
        UniqueConstraint("personality_contract", "personality_id", name="uq_inft_bindings_personality"),
        UniqueConstraint("target_contract", "target_id", name="uq_inft_bindings_target"),
    )

    # 256-bit values do not fit a BIGINT; stored as decimal strings
    id = Column(String(78), primary_key=True)

    personality_contract = Column(String, nullable=False)
    personality_id = Column(String(78), nullable=False)

    target_contract = Column(String, nullable=False)
    target_id = Column(String(78), nullable=False)

    collateral_value = Column(String(30), nullable=False, default="0")


class RegistryStateModel(Base):
    __tablename__ = "inft_registry_state"

    id = Column(Integer, primary_key=True)
    total_collateral = Column(String(78), nullable=False, default="0")
    total_supply = Column(String(78), nullable=False, default="0")


class LinkerStateModel(Base):
    __tablename__ = "inft_linker_state"

    id = Column(Integer, primary_key=True)
    next_id = Column(String(78), nullable=False)
    link_price = Column(String(30), nullable=False)
    link_fee = Column(String(30), nullable=False, default="0")
    fee_destination = Column(String, nullable=True)


class WhitelistEntryModel(Base):
    __tablename__ = "inft_whitelist"

    target_contract = Column(String, primary_key=True)
    mask = Column(Integer, nullable=False)
