"""

    One round trip each to the spot-hinta.fi API.

    fetch() either returns a fresh signal or raises one of the FetchErrors.
    There are no retries in here, the poller decides when to try again.

"""

import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG)

from abc import ABC, abstractmethod

import requests

import settings
from errors import MalformedResponse, NetworkError, RateLimited, UpstreamError
from rules import FlagSignal, PriceSignal


class Fetcher(ABC):
    def __init__(self,*,url:str,timeout_s:float=settings.FETCH_TIMEOUT_S,session:requests.Session|None=None):
        self.url=url
        self.timeout_s=timeout_s
        self.session=session or requests.Session()

    def get(self,url:str)->requests.Response:
        logging.info(f"Downloading from {url}")
        try:
            r=self.session.get(url,timeout=self.timeout_s)
        except requests.RequestException as e:
            raise NetworkError(f"HTTP request failed: {e}") from e
        logging.debug(f"{url} returned {r.status_code}")
        return r

    @abstractmethod
    def fetch(self):
        """Returns a fresh signal or raises a FetchError"""


class PriceFetcher(Fetcher):
    def __init__(self,*,url:str=settings.PRICE_API_URL,price_field:str=settings.PRICE_FIELD,**kwargs):
        super().__init__(url=url,**kwargs)
        self.price_field=price_field

    def fetch(self)->PriceSignal:
        r=self.get(self.url)

        if r.status_code==429:
            raise RateLimited()
        if r.status_code!=200:
            raise UpstreamError(r.status_code)

        try:
            data=r.json()
        except ValueError as e:
            raise MalformedResponse(f"JSON parsing failed: {e}") from e

        if not isinstance(data,dict) or self.price_field not in data:
            raise MalformedResponse(f"Invalid data format or missing {self.price_field}")

        price=data[self.price_field]
        if price is None:
            logging.warning(f"API has no {self.price_field} for now")
            return PriceSignal(None)

        try:
            price=float(price)
        except (TypeError,ValueError) as e:
            raise MalformedResponse(f"{self.price_field} is not a number: {price!r}") from e

        logging.info(f"Successfully downloaded current spot price: {price} €/kWh")
        return PriceSignal(price)


class QuickCodeFetcher(Fetcher):
    """
        The quick code endpoint answers with the status code alone,
        200 means the code is active right now and 400 means it isn't.
    """

    def __init__(self,*,codes:list[int],url:str=settings.QUICK_CODE_API_URL,**kwargs):
        super().__init__(url=url,**kwargs)
        self.codes=list(codes)

    def fetch_code(self,code:int)->bool:
        r=self.get(f"{self.url}/{code}")
        match r.status_code:
            case 200:
                return True
            case 400:
                return False
            case 429:
                raise RateLimited()
            case _:
                raise UpstreamError(r.status_code)

    def fetch(self)->FlagSignal:
        # All codes or nothing, relays are never driven from half a download
        flags={}
        for code in self.codes:
            flags[code]=self.fetch_code(code)
            logging.info(f"Quick code {code} is {'active' if flags[code] else 'not active'}")
        return FlagSignal(flags)



if __name__=="__main__":
    logging.info(PriceFetcher().fetch())
    logging.info(QuickCodeFetcher(codes=[142]).fetch())
