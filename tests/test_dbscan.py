import pytest

from rowcluster.dbscan import NOISE, UNCLASSIFIED, DbScanPipe
from rowcluster.pipeline import ImageInfo, Pipeline, PointDb


class Sink(Pipeline):
    def __init__(self):
        super().__init__()
        self.seen = []

    def handle(self, info):
        self.seen.append(info)
        super().handle(info)


def labels(points):
    return [p.cluster_id for p in points]


def test_two_separated_groups_form_two_clusters():
    pts = [PointDb(0, 0), PointDb(1, 0), PointDb(100, 100), PointDb(101, 100)]
    result = DbScanPipe(1, 5.0).cluster(pts)
    assert labels(result) == [1, 1, 2, 2]


def test_cluster_keeps_coordinates_and_order():
    pts = [PointDb(3.0, 4.0, 5.0), PointDb(-1.0, 2.0, 0.5)]
    result = DbScanPipe(1, 1.0).cluster(pts)
    assert [(p.x, p.y, p.z) for p in result] == [(p.x, p.y, p.z) for p in pts]


def test_input_points_are_not_modified():
    pts = [PointDb(0, 0), PointDb(1, 1)]
    DbScanPipe(1, 10.0).cluster(pts)
    assert labels(pts) == [UNCLASSIFIED, UNCLASSIFIED]


def test_points_below_min_points_are_noise():
    pts = [PointDb(0, 0), PointDb(1000, 0)]
    result = DbScanPipe(2, 5.0).cluster(pts)
    assert labels(result) == [NOISE, NOISE]


def test_zero_epsilon_finds_no_neighbours():
    pts = [PointDb(0, 0), PointDb(0, 0)]
    result = DbScanPipe(1, 0.0).cluster(pts)
    assert labels(result) == [NOISE, NOISE]


def test_distance_equal_to_epsilon_is_not_a_neighbour():
    pts = [PointDb(0, 0), PointDb(50, 0)]
    result = DbScanPipe(1, 50.0).cluster(pts)
    assert labels(result) == [1, 2]


def test_noise_point_is_reclaimed_as_border_point():
    pts = [PointDb(0, 0), PointDb(10, 0), PointDb(20, 0)]
    result = DbScanPipe(3, 15.0).cluster(pts)
    assert labels(result) == [1, 1, 1]


def test_chain_is_density_connected():
    pts = [PointDb(float(i * 4), 0) for i in range(10)]
    result = DbScanPipe(2, 5.0).cluster(pts)
    assert set(labels(result)) == {1}


def test_z_coordinate_counts_towards_distance():
    pts = [PointDb(0, 0, 0), PointDb(0, 0, 30)]
    result = DbScanPipe(1, 20.0).cluster(pts)
    assert labels(result) == [1, 2]


def test_negative_epsilon_acts_like_its_magnitude():
    pts = [PointDb(0, 0), PointDb(1, 0), PointDb(100, 0)]
    assert labels(DbScanPipe(1, -5.0).cluster(pts)) == labels(DbScanPipe(1, 5.0).cluster(pts))


def test_empty_input_gives_empty_result():
    assert DbScanPipe(1, 5.0).cluster([]) == []


def test_constructor_points_are_used_when_none_given():
    pipe = DbScanPipe(1, 5.0, [PointDb(0, 0), PointDb(2, 0)])
    result = pipe.cluster()
    assert labels(result) == [1, 1]
    assert pipe.points == result


def test_negative_min_points_is_rejected():
    with pytest.raises(ValueError):
        DbScanPipe(-1, 5.0)


def test_every_point_is_labelled():
    pts = [PointDb(float(x), float(y)) for x in range(0, 300, 37) for y in range(0, 300, 53)]
    result = DbScanPipe(2, 40.0).cluster(pts)
    assert all(p.cluster_id == NOISE or p.cluster_id >= 1 for p in result)


def test_handle_clusters_centres_and_forwards():
    sink = Sink()
    pipe = DbScanPipe(1, 50.0)
    pipe.next(sink)
    info = ImageInfo(mc=[(0.0, 0.0), (1.0, 1.0), (200.0, 200.0)])
    pipe.handle(info)
    assert sink.seen == [info]
    assert [(p.x, p.y, p.z) for p in info.points] == [(0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (200.0, 200.0, 0.0)]
    assert labels(info.points) == [1, 1, 2]