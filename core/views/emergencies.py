"""Emergency incidents and the responses dispatched to them."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.emergencies import EmergencyResponseService, EmergencyService


@api_view(['GET', 'POST'])
def emergencies(request):
    service = EmergencyService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def emergency_detail(request, pk: int):
    service = EmergencyService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET', 'POST'])
def emergency_responses(request, pk: int):
    service = EmergencyResponseService.for_request(request, pk)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def emergency_response_detail(request, pk: int, rid: int):
    service = EmergencyResponseService.for_request(request, pk)
    if request.method == 'GET':
        return Response(service.get(rid))
    if request.method == 'DELETE':
        return Response(service.delete(rid, request.data))
    return Response(service.update(rid, request.data))
