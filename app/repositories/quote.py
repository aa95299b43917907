from app.domain.quote import Quote
from app.repositories.base import BaseRepository


class QuoteRepository(BaseRepository[Quote]):
    model = Quote
