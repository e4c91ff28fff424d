from typing import List, Union

from crms.schemas.base import CamelModel


class AccessUpdate(CamelModel):
    user_id: int
    access: Union[List[str], str]

    def as_list(self) -> List[str]:
        return self.access if isinstance(self.access, list) else [self.access]


class AccessList(CamelModel):
    accesses: List[str]
