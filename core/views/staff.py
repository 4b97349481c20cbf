"""Staff roster and shift schedule endpoints."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.staff import StaffService


@api_view(['GET', 'POST'])
def staff(request):
    service = StaffService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def staff_detail(request, pk: int):
    service = StaffService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        # deactivates; the record stays for history
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET', 'POST'])
def staff_schedule(request, pk: int):
    service = StaffService.for_request(request)
    if request.method == 'POST':
        return Response(service.add_schedule(pk, request.data), status=status.HTTP_201_CREATED)
    return Response(service.schedule(pk, request.query_params))
