from pydantic import BaseModel, ConfigDict


class CaseFileBaseModel(BaseModel):
    model_config = ConfigDict(
        protected_namespaces=(),
        populate_by_name=True,
    )
