"""

    Everything that can go wrong talking to the price API or the relays.

    Fetch errors count towards the consecutive failure limit,
    actuation errors never do, they just get reported.

"""


class RelayControlError(Exception):
    pass


class FetchError(RelayControlError):
    """Any failed round trip to the upstream API"""


class NetworkError(FetchError):
    pass


class RateLimited(FetchError):
    def __init__(self,detail:str="API rate limit exceeded (429)"):
        super().__init__(detail)


class UpstreamError(FetchError):
    def __init__(self,status:int,detail:str=""):
        self.status=status
        super().__init__(detail or f"API returned status {status}")


class MalformedResponse(FetchError):
    pass


class ActuationError(RelayControlError):
    def __init__(self,index:int,detail:str):
        self.index=index
        self.detail=detail
        super().__init__(f"Relay {index}: {detail}")
