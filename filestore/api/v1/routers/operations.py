from __future__ import annotations

from fastapi import APIRouter, Depends

from filestore.api.v1.deps import get_file_manager
from filestore.api.v1.schemas.files import OperationCounts, OperationMetricsOut
from filestore.services import FileManager

router = APIRouter()


@router.get("/operations/metrics", response_model=OperationMetricsOut)
def operation_metrics(
    manager: FileManager = Depends(get_file_manager),
) -> OperationMetricsOut:
    """返回各存储操作的成功/失败计数与默认超时配置。"""
    return OperationMetricsOut(
        operations={
            name: OperationCounts(**counts)
            for name, counts in manager.get_metrics().items()
        },
        timeouts_ms=manager.timeouts.as_dict(),
    )
