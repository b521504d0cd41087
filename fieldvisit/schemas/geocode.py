from pydantic import BaseModel


class ReverseGeocodeResponse(BaseModel):
    address: str
