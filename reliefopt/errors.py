class ReliefOptError(Exception):
    """Base class for all errors raised by the allocation core."""


class InvalidNetwork(ReliefOptError):
    """Reference data is malformed or referentially inconsistent."""


class RouteNotFound(ReliefOptError):
    def __init__(self, depot_id: str, district_id: str):
        super().__init__(f"No travel edge from depot {depot_id} to district {district_id}")
        self.depot_id = depot_id
        self.district_id = district_id


class UnknownDistrict(ReliefOptError):
    def __init__(self, district_id: str):
        super().__init__(f"Unknown district: {district_id}")
        self.district_id = district_id


class UnknownDepot(ReliefOptError):
    def __init__(self, depot_id: str):
        super().__init__(f"Unknown depot: {depot_id}")
        self.depot_id = depot_id


class InvalidInput(ReliefOptError):
    """Run inputs (demand, inventory, urgency) are inconsistent."""


class NegativeInventoryOrDemand(InvalidInput):
    """An inventory, demand or scaling input is negative or out of range."""


class OracleError(ReliefOptError):
    """The upstream demand oracle could not produce a record."""


class InsufficientInventory(ReliefOptError):
    """Committing an allocation would drive a depot below zero."""
