from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, StringConstraints, TypeAdapter, ValidationError, AfterValidator

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=1000)]
Category = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Price = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]

_http_url = TypeAdapter(HttpUrl)


def check_image_url(value: str) -> str:
    # validate the shape but keep the string exactly as sent
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("Image URL must be a valid http(s) URL.")
    return value


ImageUrl = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=500),
    AfterValidator(check_image_url),
]


class ProductCreate(BaseModel):
    title: Title
    description: Optional[Description] = None
    price: Price
    category: Category
    image_url: Optional[ImageUrl] = None


class ProductUpdate(BaseModel):
    title: Optional[Title] = None
    description: Optional[Description] = None
    price: Optional[Price] = None
    category: Optional[Category] = None
    image_url: Optional[ImageUrl] = None


class SellerContact(BaseModel):
    id: str
    name: str
    email: str
    phone: str

    model_config = ConfigDict(from_attributes=True)


class SellerName(BaseModel):
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProductRead(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    price: Decimal
    category: str
    image_url: str
    published_at: datetime
    seller_id: str

    model_config = ConfigDict(from_attributes=True)


class ProductDetail(ProductRead):
    seller: SellerContact


class ProductListItem(BaseModel):
    id: str
    title: str
    price: Decimal
    category: str
    image_url: str
    published_at: datetime
    seller: SellerName

    model_config = ConfigDict(from_attributes=True)


class ProductDeleted(BaseModel):
    message: str
    product: ProductRead
