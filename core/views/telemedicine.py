"""Telemedicine session endpoints."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.telemedicine import TelemedicineService


@api_view(['GET', 'POST'])
def sessions(request):
    service = TelemedicineService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def session_detail(request, pk: int):
    service = TelemedicineService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        return Response(service.delete(pk, request.data))
    return Response(service.update(pk, request.data))
