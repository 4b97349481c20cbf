"""Hospital registry endpoints, live status and bed capacity."""
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.hospitals import HospitalService


@api_view(['GET', 'POST'])
def hospitals(request):
    service = HospitalService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def hospital_detail(request, pk: int):
    service = HospitalService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        service.delete(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(service.update(pk, request.data))


@api_view(['GET', 'PATCH', 'PUT'])
def hospital_status(request, pk: int):
    service = HospitalService.for_request(request)
    if request.method == 'GET':
        return Response(service.status(pk))
    return Response(service.update_status(pk, request.data))


@api_view(['GET', 'PATCH', 'PUT'])
def hospital_capacity(request, pk: int):
    service = HospitalService.for_request(request)
    if request.method == 'GET':
        return Response(service.capacity(pk))
    return Response(service.update_capacity(pk, request.data))
