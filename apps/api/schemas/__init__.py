from schemas.video import VideoOut, PageInfo, VideoListResponse
